"""Build error taxonomy: fatal build errors and per-document errors"""


class MdsiteError(Exception):
    """Base exception for all mdsite errors."""


class SourceUnavailable(MdsiteError):
    """A configured content root does not exist. Aborts the build."""

    def __init__(self, path, collection: str):
        self.path = path
        self.collection = collection
        super().__init__(f"Source root for collection '{collection}' not found: {path}")


class StageConfigurationError(MdsiteError):
    """A declared stage cannot be built. Raised before any document is processed."""


class EmptyCollection(MdsiteError):
    """The feed requires at least one entry and there are none."""


class DocumentError(MdsiteError):
    """Per-document failure; the build continues with the other documents.

    identity is the (collection, slug) pair, or the source path when the
    failure happened before a slug was known. stage is set when a pipeline
    stage raised the error.
    """

    def __init__(self, message: str, identity: str = None, stage: str = None):
        self.message = message
        self.identity = identity
        self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        where = [p for p in (self.identity, self.stage and f"stage '{self.stage}'") if p]
        return f"{' / '.join(where)}: {self.message}" if where else self.message


class UnreadableDocument(DocumentError):
    """The source file cannot be read or is not valid UTF-8."""


class MalformedFrontmatter(DocumentError):
    """The metadata block is present but not a valid YAML mapping of known types."""


class MissingRequiredField(DocumentError):
    """A required frontmatter field is absent."""

    def __init__(self, field: str, identity: str = None):
        self.field = field
        super().__init__(f"missing required frontmatter field '{field}'", identity)


class MissingDate(MissingRequiredField):
    """The document has no date; it cannot be ordered in the feed."""

    def __init__(self, identity: str = None):
        super().__init__("date", identity)


class AssetNotFound(DocumentError):
    """A local asset reference does not resolve to an existing file."""

    def __init__(self, reference: str, identity: str = None, stage: str = None):
        self.reference = reference
        super().__init__(f"asset not found: {reference}", identity, stage)


class DuplicateDocument(DocumentError):
    """Two documents of the same collection resolve to the same slug."""


class StageFailed(DocumentError):
    """A stage raised an unexpected exception while transforming a document."""

    def __init__(self, identity: str, stage: str, cause: Exception):
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}", identity, stage)
