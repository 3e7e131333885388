from rich.console import Console

# stdout carries the report, everything meant for the operator goes to stderr
err_console = Console(stderr=True)
