import nh3

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def strip_all_html(text: str) -> str:
    return nh3.clean(text, tags=set(), attributes={})


def plural(unit: str, count: int) -> str:
    return f"{count} {unit}" + ("s" if count != 1 else "")
