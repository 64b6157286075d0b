import sys
from colorama import init as colorama_init, Fore, Style
from datetime import datetime
colorama_init(autoreset=True)


class Log:
    """Console reporter; everything goes to stderr so stdout stays clean."""

    def __init__(self, verbose: int = 1, ai_logs: bool = False, stream=None):
        self.verbose = verbose
        self.ai_logs = ai_logs
        self.stream = stream or sys.stderr
        self._midline = False

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def _emit(self, line: str):
        self.end_reasoning()
        print(line, file=self.stream)

    def info(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            self._emit(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        self._emit(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        self._emit(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            self._emit(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def agent(self, msg: str):
        if self.ai_logs:
            self._emit(f"{self._fmt('AGENT', Fore.BLUE)} {msg}")

    def reasoning(self, text: str):
        """Streamed reasoning deltas, printed inline as they arrive."""
        if not self.ai_logs or not text:
            return
        self.stream.write(f"{Style.DIM}{text}{Style.RESET_ALL}")
        self.stream.flush()
        self._midline = not text.endswith("\n")

    def end_reasoning(self):
        if self._midline:
            print(file=self.stream)
            self._midline = False

    def finding(self, sev: str, title: str, skill_id: str, location: str = ""):
        sev_col = {"critical": Fore.RED, "high": Fore.RED, "medium": Fore.YELLOW,
                   "low": Fore.GREEN}.get(sev, Fore.WHITE)
        where = f" {Style.DIM}({location}){Style.RESET_ALL}" if location else ""
        self._emit(f"{self._fmt(sev.upper(), sev_col)} {title} "
                   f"{Fore.MAGENTA}[{skill_id}]{Style.RESET_ALL}{where}")


def truncate_for_log(output: str, max_chars: int) -> str:
    if len(output) <= max_chars:
        return output
    return f"{output[:max_chars]}\n... (truncated, {len(output)} chars total)"
