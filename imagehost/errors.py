"""Upload error taxonomy.

Each error carries the HTTP status and the client-facing message it is
rendered with. ``detail`` is only populated for internal failures.
"""


class UploadError(Exception):
    status_code = 500
    message = "Upload failed"

    def __init__(self, message: str | None = None, detail: str | None = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    def to_body(self) -> dict[str, str]:
        body = {"error": self.message}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class MissingFile(UploadError):
    status_code = 400
    message = "No image uploaded"


class UnsupportedType(UploadError):
    status_code = 400
    message = "Only JPG, PNG, GIF, and WEBP images are allowed."


class PayloadTooLarge(UploadError):
    status_code = 413
    message = "File too large."

    @classmethod
    def for_limit(cls, max_size_mb: str) -> "PayloadTooLarge":
        return cls(f"File too large. Max size is {max_size_mb}MB.")


class InvalidImage(UploadError):
    status_code = 400
    message = "Invalid image file (corrupted or fake)"


class InternalFailure(UploadError):
    status_code = 500
    message = "Upload failed"
