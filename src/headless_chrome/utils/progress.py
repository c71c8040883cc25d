import sys
from typing import Optional, TextIO

_MB = 1024 * 1024


class Progress:
    def __init__(self, total: int, description: str = "Downloading", bar_length: int = 40,
                 stream: Optional[TextIO] = None):
        """
        Initializes a byte-based progress bar.

        Args:
            total (int): Expected number of bytes. 0 means unknown (Content-Length missing).
            description (str, optional): A description prefix for the progress bar.
            bar_length (int, optional): The character length of the progress bar itself.
            stream (TextIO, optional): Where to draw the bar. Defaults to sys.stdout.
        """
        if total < 0:
            raise ValueError("Total must be non-negative.")
        if bar_length <= 0:
            raise ValueError("Bar length must be positive.")

        self.total = total
        self.description = description
        self.bar_length = bar_length
        self.stream = stream if stream is not None else sys.stdout
        self.current = 0
        self._completed = False

    @property
    def ratio(self) -> float:
        if self.total == 0:
            return 0.0 if not self._completed else 1.0
        return min(max(self.current / self.total, 0.0), 1.0)

    def _display(self, status_message: str = "") -> None:
        done_mb = self.current / _MB
        if self.total:
            filled_length = int(self.bar_length * self.ratio)
            bar = "=" * filled_length + "-" * (self.bar_length - filled_length)
            output_str = f"\r{self.description}: [{bar}] {self.ratio * 100:.2f}% ({done_mb:.1f}/{self.total / _MB:.1f} MB)"
        else:
            output_str = f"\r{self.description}: {done_mb:.1f} MB"

        if status_message:
            output_str += f" - {status_message}"

        self.stream.write(output_str.ljust(79))
        self.stream.flush()

    def update(self, increment: int, status_message: str = "") -> None:
        """Adds `increment` bytes and redraws."""
        if self._completed:
            return
        self.current += increment
        if self.total and self.current > self.total:
            self.current = self.total
        self._display(status_message)

    def finish(self, final_message: Optional[str] = "Done.") -> None:
        if self._completed:
            return
        if self.total:
            self.current = self.total
        self._completed = True
        self._display(status_message=final_message or "")
        self.stream.write("\n")
        self.stream.flush()

    def __enter__(self):
        self._display()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._completed:
            if exc_type:
                self.finish(final_message=f"Failed with {exc_type.__name__}.")
            else:
                self.finish()
