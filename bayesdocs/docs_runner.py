"""Execute the Python snippets embedded in Markdown tutorials.

A tutorial is rendered by running its fenced ``python`` blocks top to
bottom in one shared namespace, then writing the document back out with
each block's captured stdout inlined beneath it. Blocks whose info string
contains ``skip`` are shown but never run.

Blocks are run with ``exec`` in the current interpreter, with the same
privileges as the caller and no sandbox. Only render tutorial sources you
would be willing to run as a script, such as the documents under ``docs/``.
"""

from __future__ import annotations

import contextlib
import io
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")


class DocExecutionError(RuntimeError):
    """A code block in a tutorial raised."""

    def __init__(self, document: str, block: "CodeBlock", cause: BaseException):
        self.document = document
        self.block = block
        super().__init__(
            f"{document}: block {block.index} (line {block.lineno}) failed: "
            f"{type(cause).__name__}: {cause}"
        )


@dataclass
class CodeBlock:
    index: int
    source: str
    lineno: int          # 1-based line of the opening fence
    end_lineno: int      # 1-based line of the closing fence
    skip: bool = False


@dataclass
class BlockOutput:
    block: CodeBlock
    stdout: str
    elapsed: float


@dataclass
class DocumentResult:
    path: Path
    outputs: list[BlockOutput] = field(default_factory=list)
    namespace: dict = field(default_factory=dict, repr=False)

    @property
    def n_executed(self) -> int:
        return len(self.outputs)


def extract_blocks(text: str) -> list[CodeBlock]:
    """Find fenced ``python`` code blocks in Markdown text, in order."""
    blocks: list[CodeBlock] = []
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        m = FENCE_RE.match(lines[i])
        if not m:
            i += 1
            continue
        fence = m.group("fence")
        info = m.group("info").strip().split()
        start = i
        body: list[str] = []
        i += 1
        while i < len(lines):
            close = FENCE_RE.match(lines[i])
            if (close and close.group("fence")[0] == fence[0]
                    and len(close.group("fence")) >= len(fence)
                    and not close.group("info").strip()):
                break
            body.append(lines[i])
            i += 1
        # Unterminated fences run to end of document, as CommonMark does
        if info and info[0] == "python":
            blocks.append(CodeBlock(
                index=len(blocks),
                source="\n".join(body) + "\n",
                lineno=start + 1,
                end_lineno=min(i, len(lines) - 1) + 1,
                skip="skip" in info[1:],
            ))
        i += 1
    return blocks


def execute_document(
    path: Path, namespace: Optional[dict] = None
) -> DocumentResult:
    """Run every non-skipped block of ``path`` in a shared namespace.

    The document is trusted code: blocks execute unsandboxed in this process.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    ns = namespace if namespace is not None else {"__name__": "__main__"}
    result = DocumentResult(path=path, namespace=ns)

    for block in extract_blocks(text):
        if block.skip:
            logger.debug("Skipping block %d of %s", block.index, path.name)
            continue
        buf = io.StringIO()
        start = time.perf_counter()
        try:
            code = compile(block.source, f"{path.name}[block {block.index}]", "exec")
            with contextlib.redirect_stdout(buf):
                exec(code, ns)
        except Exception as e:
            raise DocExecutionError(str(path), block, e) from e
        elapsed = time.perf_counter() - start
        result.outputs.append(BlockOutput(block=block, stdout=buf.getvalue(), elapsed=elapsed))
        logger.info("Ran %s block %d in %.2fs", path.name, block.index, elapsed)

    return result


def render_document(path: Path, output: Optional[Path] = None) -> Path:
    """Execute ``path`` and write it with outputs inlined after each block.

    Defaults to ``<stem>.rendered.md`` next to the source.
    """
    path = Path(path)
    result = execute_document(path)
    outputs = {o.block.end_lineno: o.stdout for o in result.outputs}

    rendered: list[str] = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        rendered.append(line)
        stdout = outputs.get(lineno)
        if stdout:
            rendered.extend(["", "```text", stdout.rstrip("\n"), "```"])

    output = Path(output) if output is not None else path.with_suffix(".rendered.md")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text("\n".join(rendered) + "\n", encoding="utf-8")
    logger.info("Rendered %s -> %s (%d blocks)", path, output, result.n_executed)
    return output
