import secrets
import string

ALPHABET = string.ascii_letters + string.digits
GENERATED_CODE_LENGTH = 7

def generate_random_code(length: int = GENERATED_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
