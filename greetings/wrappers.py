from flask import Request as FlaskRequest
from flask import Response as FlaskResponse


class GreetingsResponse(FlaskResponse):
    """Default mimetype is redefined."""
    default_mimetype = "application/json"


class GreetingsRequest(FlaskRequest):

    @property
    def is_json(self) -> bool:
        """If no content type defined in request, default is application/json`.        """
        return not self.mimetype or super().is_json

    @property
    def is_multipart(self) -> bool:
        """Check if the mimetype indicates form-data.
        """
        mt = self.mimetype
        return (
                mt == "multipart/form-data"
        )

    @property
    def is_form_urlencoded(self) -> bool:
        """Check if the mimetype indicates form-data.
        """
        mt = self.mimetype
        return (
                mt == "application/x-www-form-urlencoded"
        )
