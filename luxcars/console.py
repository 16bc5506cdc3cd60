class Console:
    """Interactive prompts for the build/admin entry points.

    EOF or Ctrl-C answers as "quit".
    """

    @staticmethod
    def confirm(prompt: str) -> bool:
        while True:
            try:
                raw = input(f"{prompt} [ y/n/q(uit) ] : ").strip().lower()
            except (EOFError, KeyboardInterrupt):  # noqa: PERF203
                print()
                return False
            if not raw: continue
            if raw in ('q', 'quit'): return False
            if raw in ('y', 'yes'): return True
            if raw in ('n', 'no'): return False

    @staticmethod
    def input_str(prompt: str, default: str = '') -> str:
        try:
            raw = input(f"{prompt} [{default}] : ").strip()
        except (EOFError, KeyboardInterrupt):  # noqa: PERF203
            print()
            return ''
        return raw or default
