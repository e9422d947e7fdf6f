"""Input checks shared by the services."""


def is_encodable(value: str) -> bool:
    """True when the text survives UTF-8 encoding.

    JSON allows lone surrogates ("\\ud800"), which Python decodes into a
    str that cannot be hashed, stored, or sent back out.
    """
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
