"""Terminal highlighting for headline messages."""

CYAN = "\033[96m"
RED = "\033[91m"
RESET = "\033[0m"


def cyan(text: str) -> str:
    return f"{CYAN}{text}{RESET}"


def red(text: str) -> str:
    return f"{RED}{text}{RESET}"
