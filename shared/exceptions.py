from typing import Any, Optional


class ConsoleException(Exception):
    """Base exception for the call console"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class UpstreamFetchError(ConsoleException):
    """Exception raised when a call to the conversational AI provider fails"""
    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details

class ConversationNotFoundException(ConsoleException):
    """Exception raised when a conversation is not found"""
    pass

class InvalidPhoneNumberException(ConsoleException):
    """Exception raised when a phone number cannot be normalised"""
    pass

class TelephonyException(ConsoleException):
    """Exception raised for telephony errors"""
    pass
