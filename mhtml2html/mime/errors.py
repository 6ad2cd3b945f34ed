"""
mhtml2html/mime/errors.py
-------------------------
Exception types raised while parsing and inlining MHTML archives.
"""


class MHTMLError(Exception):
    """Base class for all converter errors."""


class StructuralError(MHTMLError, ValueError):
    """
    The archive is malformed: missing headers or boundary, no index document,
    unexpected end of input, orphaned header continuation line.

    Always fatal; the conversion is aborted with no partial output.
    """


class ResourceEmbedError(MHTMLError):
    """A single asset could not be encoded into a data URI."""
