import glob
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Collection, Sequence

from batching_rewriter import BatchingRewriter
from constants import TRIGGER_NAMES
from dsa_types import CanonicalName, TypeName
import import_reconciliation
from run_summary import FileRewriteOutcome
from ts_parsing import TypeScriptParseError, parse_typescript
import type_rewriting


class SpeculativeFileRewriter:
    def __init__(self, p: Path):
        self.p = p
        self.original_content = p.read_text("utf-8")
        self.cached_content = self.original_content

    def update_content_via(self, fn: Callable[[str], str]):
        self.cached_content = fn(self.cached_content)

    def write(self) -> bool:
        """Returns true if any changes were made."""
        if self.cached_content != self.original_content:
            self.p.write_text(self.cached_content, encoding="utf-8")
            return True
        return False


def rewrite_source(
    source: str,
    file_path: Path,
    aliases_module: Path,
    trigger_names: Collection[TypeName] = TRIGGER_NAMES,
) -> tuple[str, list[CanonicalName]]:
    """Rewrite one file's text. Returns the new text and the canonical names it now uses.

    When no type expression matched, the text is returned untouched."""
    content = source.encode("utf-8")
    tree = parse_typescript(content, file_path)
    rewriter = BatchingRewriter(content)
    names = type_rewriting.rewrite_type_expressions(tree, rewriter, trigger_names=trigger_names)
    if not names:
        return source, []

    specifier = import_reconciliation.aliases_module_specifier(file_path, aliases_module)
    import_reconciliation.reconcile_alias_import(tree, rewriter, specifier, names)
    rewritten = rewriter.apply_rewrites()
    pruned = import_reconciliation.prune_unused_imports(rewritten, file_path)
    return pruned.decode("utf-8"), names


def rewrite_file(
    path: Path,
    aliases_module: Path,
    trigger_names: Collection[TypeName] = TRIGGER_NAMES,
    dry_run: bool = False,
) -> FileRewriteOutcome:
    rewriter = SpeculativeFileRewriter(path)
    names: list[CanonicalName] = []

    def rewrite(text: str) -> str:
        new_text, found = rewrite_source(text, path, aliases_module, trigger_names)
        names.extend(found)
        return new_text

    rewriter.update_content_via(rewrite)
    outcome = FileRewriteOutcome(path.as_posix(), canonical_names=names)
    # Files without matches are never re-written, even byte-identically.
    if names and not dry_run:
        outcome.written = rewriter.write()
    return outcome


def expand_pattern(pattern: str) -> list[Path]:
    return [Path(p) for p in sorted(glob.glob(pattern, recursive=True)) if Path(p).is_file()]


def rewrite_files(
    paths: Sequence[Path],
    aliases_module: Path,
    trigger_names: Collection[TypeName] = TRIGGER_NAMES,
    dry_run: bool = False,
    jobs: int | None = None,
) -> list[FileRewriteOutcome]:
    """Rewrite each file independently, on a pool of worker threads.

    The aliases module itself is skipped. A file that fails to read, parse or
    write is reported in its outcome; the other files still complete."""
    aliases_resolved = aliases_module.resolve()
    candidates = [p for p in paths if p.resolve() != aliases_resolved]
    outcomes: list[FileRewriteOutcome] = []
    remaining = len(candidates)

    with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="RewriteWorker") as executor:
        futures = {
            executor.submit(rewrite_file, p, aliases_module, trigger_names, dry_run): p
            for p in candidates
        }
        for future in as_completed(futures):
            path = futures[future]
            try:
                outcomes.append(future.result())
            except (TypeScriptParseError, OSError, UnicodeDecodeError) as e:
                outcomes.append(FileRewriteOutcome(path.as_posix(), error=str(e)))
            remaining -= 1
            print(f"Remaining: {remaining}")

    outcomes.sort(key=lambda o: o.path)
    return outcomes
