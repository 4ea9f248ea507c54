import re

DOCUMENT_SEPARATOR = re.compile(r"^---(?:\r?\n|\Z)", re.MULTILINE)
""" Matches a line that consists of exactly `---`, with either line ending. """


def split_documents(text: str) -> list[str]:
    """
    Split a multi-document YAML string into its documents. Empty documents, including the one before a separator at
    the very start of the text, are dropped. The remaining documents are returned unchanged and in order.
    """

    return [document for document in DOCUMENT_SEPARATOR.split(text) if document != ""]
