# utils/security.py
from passlib.context import CryptContext

# Argon2id for the bootstrap admin; verification belongs to the external credential verifier.
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
	return pwd_context.hash(password)
