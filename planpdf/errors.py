"""
Domain exceptions for PlanPDF.

Routes translate these into HTTP responses; background tasks record them
on the job row.
"""


class PlanPdfError(Exception):
    """Base class for all PlanPDF errors."""
    pass


class ConfigurationError(PlanPdfError):
    """A required setting is missing."""
    pass


class StorageError(PlanPdfError):
    """Object storage operation failed."""
    pass


class ObjectNotFound(StorageError):
    """Object does not exist in the bucket."""
    pass


class PreviewError(PlanPdfError):
    """Preview PDF could not be derived from the full report."""
    pass


class WorkflowError(PlanPdfError):
    """External generation workflow rejected or did not answer the request."""
    pass


class PaymentGatewayError(PlanPdfError):
    """Payment gateway returned an error."""
    pass


class PaymentAlreadyUsed(PlanPdfError):
    """A verified payment was already applied to another account."""
    pass
