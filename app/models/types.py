from sqlalchemy.types import Text, TypeDecorator

from app.services.encryption import decrypt_value, encrypt_value, is_encrypted


class EncryptedString(TypeDecorator):
    """Text column transparently encrypted with the field codec.

    Legacy plaintext rows load unchanged, so columns can be switched over
    without rewriting existing data.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value == "":
            return value
        if is_encrypted(value):
            return value
        return encrypt_value(value)

    def process_result_value(self, value, dialect):
        if value is None or value == "":
            return value
        return decrypt_value(value)
