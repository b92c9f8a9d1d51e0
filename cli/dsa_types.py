from typing import TypeAlias

FilePathStr: TypeAlias = str
ModuleSpecifierStr: TypeAlias = str
CanonicalName: TypeAlias = str
TypeName: TypeAlias = str
