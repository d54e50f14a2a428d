from .text_splitter import DEFAULT_SEPARATORS, TextSplitter, needs_splitting, split_text

__all__ = ["DEFAULT_SEPARATORS", "TextSplitter", "needs_splitting", "split_text"]
