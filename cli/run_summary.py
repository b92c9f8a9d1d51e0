from dataclasses import dataclass, field
from pathlib import Path

from dataclasses_json import dataclass_json, DataClassJsonMixin


@dataclass_json
@dataclass
class FileRewriteOutcome:
    path: str
    canonical_names: list[str] = field(default_factory=list)
    written: bool = False
    error: str | None = None


@dataclass
class RunSummary(DataClassJsonMixin):  # mixin for better type inference
    pattern: str
    aliases_module: str
    dry_run: bool
    files: list[FileRewriteOutcome]

    @property
    def rewritten(self) -> list[FileRewriteOutcome]:
        return [f for f in self.files if f.canonical_names and f.error is None]

    @property
    def failed(self) -> list[FileRewriteOutcome]:
        return [f for f in self.files if f.error is not None]

    def write_json(self, path: Path) -> None:
        path.write_text(self.to_json(indent=2) + "\n", encoding="utf-8")
