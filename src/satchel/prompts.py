# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Interactive Gates

Single responsibility: Ask the user to confirm or choose, and show listings.
Every confirmation gate in a transaction goes through one of these objects.
"""

import sys
from typing import List


class ConsoleUI:
    """Terminal prompts on stdin/stdout"""

    def __init__(self, assume_yes: bool = False):
        """
        Initialize console UI.

        Args:
            assume_yes: Answer yes to every confirmation without asking
        """
        self.assume_yes = assume_yes

    def show(self, message: str = ""):
        print(message)

    def show_lines(self, header: str, lines: List[str]):
        print(header)
        for line in lines:
            print(f"    {line}")

    def confirm(self, message: str) -> bool:
        """
        Ask a yes/no question; only an explicit yes confirms.

        Returns:
            True if the user answered y or yes
        """
        if self.assume_yes:
            print(f"{message} [y/N] y")
            return True

        try:
            resp = input(f"{message} [y/N] ").strip().lower()
        except EOFError:
            resp = ""
        return resp in ("y", "yes")

    def choose(self, message: str, options: List[str]) -> str:
        """
        Show numbered options and return the raw answer.

        The caller validates the answer.
        """
        print(message)
        for i, option in enumerate(options, start=1):
            print(f"  ({i}) {option}")
        try:
            return input("choice: ").strip()
        except EOFError:
            return ""

    def warn(self, message: str):
        print(message, file=sys.stderr)
