"""Source annotations for emitted instructions.

Annotations live in a table next to the module rather than inside it. They can
optionally be mirrored into instruction metadata and are used to print an IR
listing that points each instruction back at the source line it came from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from llvmlite import ir

from vtlang.lexer import SourceSpan

if TYPE_CHECKING:
    from vtlang.codegen_model import LoweredModule


SNIPPET_MAX_CHARS = 80

_METADATA_REF = re.compile(r"!vtlang\.src (![^\s,]+)")
_DEFINE_LINE = re.compile(r'^define\b.*?@"?([^"(]+)"?\(')


@dataclass(frozen=True)
class SourceAnnotation:
    path: str
    span: SourceSpan
    kind: str
    snippet: str

    def format(self) -> str:
        start = self.span.start
        end = self.span.end
        text = f"{self.path}:{start.line}:{start.column}-{end.line}:{end.column}"
        if self.kind:
            text += f" | {self.kind}"
        if self.snippet:
            text += f" | {self.snippet}"
        return text


def source_snippet(lines: list[str], span: SourceSpan) -> str:
    line_no = span.start.line
    if line_no <= 0 or line_no > len(lines):
        return ""
    line = lines[line_no - 1]
    start_col = max(span.start.column - 1, 0)
    if start_col < len(line):
        line = line[start_col:]
    return line[:SNIPPET_MAX_CHARS].replace("\t", " ").strip()


class AnnotationTable:
    def __init__(self, source_path: str = "<memory>", source_text: str | None = None):
        self.source_path = source_path
        self.source_lines = source_text.splitlines() if source_text is not None else []
        # Keyed by id(); the instruction is kept alongside so the id stays valid.
        self._entries: dict[int, tuple[ir.Instruction, SourceAnnotation]] = {}
        self._by_metadata_ref: dict[str, SourceAnnotation] = {}

    def record(self, instr: ir.Instruction, span: SourceSpan, kind: str) -> SourceAnnotation:
        annotation = SourceAnnotation(
            path=self.source_path,
            span=span,
            kind=kind,
            snippet=source_snippet(self.source_lines, span),
        )
        self._entries[id(instr)] = (instr, annotation)
        return annotation

    def lookup(self, instr: ir.Instruction) -> SourceAnnotation | None:
        entry = self._entries.get(id(instr))
        return entry[1] if entry is not None else None

    def attach_metadata(self, module: ir.Module, kind_name: str) -> None:
        for instr, annotation in self._entries.values():
            node = module.add_metadata([annotation.format()])
            instr.set_metadata(kind_name, node)
            self._by_metadata_ref[node.get_reference()] = annotation

    def by_metadata_ref(self, ref: str) -> SourceAnnotation | None:
        return self._by_metadata_ref.get(ref)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[ir.Instruction, SourceAnnotation]]:
        return iter(self._entries.values())


def render_listing(lowered: LoweredModule, source_text: str, source_path: str) -> str:
    out: list[str] = [f"; === Source: {source_path} ==="]
    for line_no, line in enumerate(source_text.splitlines(), start=1):
        out.append(f"; {line_no} | {line}")
    out.append("; === Module IR ===")

    for line in str(lowered.module).splitlines():
        define = _DEFINE_LINE.match(line)
        if define is not None:
            out.append(";")
            out.append(f"; === Function: {define.group(1)} ===")

        ref = _METADATA_REF.search(line)
        annotation = lowered.annotations.by_metadata_ref(ref.group(1)) if ref is not None else None
        if annotation is not None:
            line = f"{line} ; src: {annotation.format()}"
        out.append(line)

    return "\n".join(out) + "\n"
