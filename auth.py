import os
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from dotenv import load_dotenv

# Load .env
load_dotenv()
SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"

# Roles allowed to override invoice status and delete invoices
OPERATOR_ROLES = ("admin", "manager")


# Token Auth Dependency
def verify_token(request: Request):
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = auth.split(" ")[1]
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(status_code=403, detail="Invalid token")


def require_operator(token: dict = Depends(verify_token)):
    if token.get("role") not in OPERATOR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and managers can perform this action"
        )
    return token
