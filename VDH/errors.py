class HuffmanError(ValueError):
    """Base class for every failure raised by the Huffman engine."""


class InvalidInput(HuffmanError):
    """Unusable source, malformed length table or colliding codes."""


class BufferUnderrun(HuffmanError, EOFError):
    """A bit address maps outside the supplied byte buffer."""


class MalformedStream(HuffmanError):
    """Traversal hit a missing child, or a code ran past its bit range."""
