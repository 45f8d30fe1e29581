from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from domain.models import FiberSnapshot
from domain.ports.repositories import FiberSnapshotRepository
from domain.services.parse_definition import parse_fiber_snapshot


class FileSystemFiberSnapshotRepository(FiberSnapshotRepository):
    """Reads fiber snapshots or bare definitions from JSON files.

    Line comments (``// ...``) outside string literals are stripped first so
    hand-written fixtures can be annotated.
    """

    def load_by_path(self, path: Path) -> FiberSnapshot:
        text = path.read_text(encoding="utf-8")
        return parse_fiber_snapshot(self._strip_comments(text))

    def load_all_with_paths(self, directory: Path) -> List[tuple[Path, FiberSnapshot]]:
        return [(path, self.load_by_path(path)) for path in sorted(self._iter_paths(directory))]

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        yield from directory.glob("*.json")

    def _strip_comments(self, content: str) -> str:
        result_lines: List[str] = []
        for line in content.splitlines():
            in_string = False
            escaped = False
            cleaned = []
            for idx, char in enumerate(line):
                if char == '"' and not escaped:
                    in_string = not in_string
                if not in_string and char == "/" and idx + 1 < len(line) and line[idx + 1] == "/":
                    break
                cleaned.append(char)
                escaped = char == "\\" and not escaped
            result_lines.append("".join(cleaned))
        return "\n".join(result_lines)
