# Bare type names whose occurrences mark a type expression as worth classifying.
TRIGGER_NAMES = frozenset(["Store", "DataSource"])

# Formatting of inserted import statements.
IMPORT_QUOTE = "'"
LINE_TERMINATOR = "\n"

# Longest suffix first, so that `aliases.d.ts` loses the whole of `.d.ts`.
TYPESCRIPT_SUFFIXES = (".d.ts", ".d.mts", ".d.cts", ".tsx", ".mts", ".cts", ".ts")
