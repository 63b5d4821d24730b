"""Exception types shared by the codec, the document model, and the pipeline"""


class MdSocialError(Exception):
    """Base class for all mdsocial errors."""


class FrontmatterError(MdSocialError, ValueError):
    """The metadata block could not be decoded into a mapping."""


class DocumentError(MdSocialError, ValueError):
    """A mutation was attempted on a document without a metadata block."""


class ConfigurationError(MdSocialError, ValueError):
    """A module is partially configured and cannot be constructed."""


class ModuleSkipped(MdSocialError):
    """An optional module is not configured; leave it out of the pipeline."""


class ProcessingError(MdSocialError, RuntimeError):
    """A processor failed to enrich a document."""


class PublishError(MdSocialError, RuntimeError):
    """A publisher failed to post a document."""
