"""
Error types for the expense tracker API

Every error raised on purpose derives from ExpenseTrackerError and knows the
HTTP status and message it should be rendered with.
"""
from typing import Dict, List, Optional


class ExpenseTrackerError(Exception):
    status_code = 500
    message = "Unexpected server error."
    code: Optional[str] = None

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict]] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details

    def to_dict(self) -> Dict:
        body = {"message": self.message}
        if self.code:
            body["code"] = self.code
        if self.details:
            body["errors"] = self.details
        return body


class RequestValidationError(ExpenseTrackerError):
    status_code = 400
    message = "Invalid request data."


class AuthorizationError(ExpenseTrackerError):
    status_code = 401
    message = "Not authorized."


class NotFoundError(ExpenseTrackerError):
    status_code = 404
    message = "Not found."


class ConflictError(ExpenseTrackerError):
    # Duplicate registrations answer 400 like any other bad request
    status_code = 400
    message = "User already exists"


# CSV ingestion outcomes

class IngestionError(ExpenseTrackerError):
    pass


class NoFileError(IngestionError):
    status_code = 400
    code = "no_file"
    message = "Please upload a CSV file."


class UploadNotFoundError(IngestionError):
    status_code = 400
    code = "file_not_found"
    message = "File not found."


class ProcessingError(IngestionError):
    status_code = 500
    code = "processing_error"
    message = "Error processing file."


class NoValidRowsError(IngestionError):
    status_code = 400
    code = "no_valid_data"
    message = "No valid data found in the CSV file."


class SaveError(IngestionError):
    status_code = 500
    code = "save_error"
    message = "Error saving expenses."
