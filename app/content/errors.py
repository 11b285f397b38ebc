class ContentError(Exception):
    pass


class ContentNotFoundError(ContentError):
    pass


class ContentAccessDeniedError(ContentError):
    pass


class ArtistProfileMissingError(ContentError):
    pass


class InvalidContentPayloadError(ContentError):
    pass
