"""
Custom exceptions for the inspection AI service
"""


class InspectionAIException(Exception):
    """Base exception for the inspection AI service"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ImageValidationError(InspectionAIException):
    """Image could not be decoded or validated"""
    pass


class ConfigurationError(InspectionAIException):
    """AI analysis is disabled or not configured"""
    pass


class InferenceTimeoutError(InspectionAIException):
    """Remote inference exceeded its hard deadline"""
    pass


class InferenceFailedError(InspectionAIException):
    """Transport error or non-success response from the remote model"""
    pass


class MappingLookupError(InspectionAIException):
    """Object mapping store could not be read or written"""
    pass


class MappingNotFoundError(MappingLookupError):
    """No mapping exists for the requested object class"""
    pass
