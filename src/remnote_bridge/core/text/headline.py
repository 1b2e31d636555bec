"""Single-line headlines combining a Rem's title and detail."""

from remnote_bridge.models.node import Category

CATEGORY_DELIMITERS: dict[Category, str] = {
    Category.CONCEPT: "::",
    Category.DESCRIPTOR: ";;",
}

DEFAULT_DELIMITER = ">>"


def delimiter_for(category: Category) -> str:
    return CATEGORY_DELIMITERS.get(category, DEFAULT_DELIMITER)


def format_headline(title: str, detail: str | None, category: Category) -> str:
    """Format e.g. ``"Term :: Definition"`` or ``"Question >> Answer"``.

    Returns the bare title when there is no detail.
    """
    if not detail:
        return title
    return f"{title} {delimiter_for(category)} {detail}"
