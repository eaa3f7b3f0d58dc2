"""PDF to text conversion."""

import asyncio
import logging
import sys
from typing import Optional, Sequence

from pypdf import PdfReader

from .models import ConversionResult
from .utils import get_file_basename


DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


def extract_pdf_text(file_path: str) -> str:
    """
    Extract the visible text of a PDF, page by page, top to bottom.

    Args:
        file_path: Path to the PDF file

    Returns:
        Text content with each page followed by a newline
    """
    reader = PdfReader(file_path)
    return "".join((page.extract_text() or "") + "\n" for page in reader.pages)


class PdfTextConverter:
    """
    Converts PDF files to text in a child process.

    Each conversion is bounded by a timeout and a cap on the produced
    output; exceeding either fails that file only.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        command: Optional[Sequence[str]] = None
    ):
        """
        Initialize the converter.

        Args:
            timeout: Seconds to wait for one conversion
            max_bytes: Maximum size of the text output in bytes
            command: Command to run; the file path is appended as last
                argument. Defaults to this module under the current
                interpreter.
        """
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.command = list(command) if command else [sys.executable, "-m", __name__]

    async def convert(self, file_path: str) -> ConversionResult:
        """
        Convert one PDF file to text.

        Args:
            file_path: Path to the PDF file

        Returns:
            Conversion result carrying either the text or an error message
        """
        filename = get_file_basename(file_path)

        try:
            process = await asyncio.create_subprocess_exec(
                *self.command, file_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logging.error(f"Could not start text conversion for {filename}: {e}")
            return ConversionResult(success=False, error=str(e))

        try:
            stdout, stderr, oversized = await asyncio.wait_for(
                self._collect_output(process), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            error = f"Text conversion timed out after {self.timeout:g} seconds"
            logging.error(f"{error}: {filename}")
            return ConversionResult(success=False, error=error)

        if oversized:
            error = f"Text output exceeds {self.max_bytes} bytes"
            logging.error(f"{error}: {filename}")
            return ConversionResult(success=False, error=error)

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            error = message or f"Text conversion exited with status {process.returncode}"
            logging.error(f"Error extracting text from {filename}: {error}")
            return ConversionResult(success=False, error=error)

        return ConversionResult(success=True, text=stdout.decode("utf-8", errors="replace"))

    async def _collect_output(self, process: asyncio.subprocess.Process) -> tuple[bytes, bytes, bool]:
        """Read stdout up to the size cap and stderr, then wait for exit."""

        async def read_stdout() -> tuple[bytes, bool]:
            chunks = []
            size = 0
            while True:
                chunk = await process.stdout.read(CHUNK_SIZE)
                if not chunk:
                    return b"".join(chunks), False
                size += len(chunk)
                if size > self.max_bytes:
                    self._signal_kill(process)
                    await self._drain(process.stdout)
                    return b"", True
                chunks.append(chunk)

        (stdout, oversized), stderr = await asyncio.gather(read_stdout(), process.stderr.read())
        await process.wait()
        return stdout, stderr, oversized

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Kill the child and wait for it, draining its pipes."""
        self._signal_kill(process)
        await self._drain(process.stdout)
        await self._drain(process.stderr)
        await process.wait()

    @staticmethod
    def _signal_kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    @staticmethod
    async def _drain(stream: asyncio.StreamReader) -> None:
        while await stream.read(CHUNK_SIZE):
            pass


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print the text of the PDF given as argument to stdout."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("usage: python -m customer_records.pdf_text <file.pdf>", file=sys.stderr)
        return 2

    try:
        text = extract_pdf_text(args[0])
    except Exception as e:
        print(f"Error extracting text from {get_file_basename(args[0])}: {e}", file=sys.stderr)
        return 1

    sys.stdout.buffer.write(text.encode("utf-8"))
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
