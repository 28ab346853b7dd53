import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config import ServerConfig

basic_security = HTTPBasic()

_credentials = {}


def configure(username, password):
    _credentials["username"] = username
    _credentials["password"] = password


def _default_credentials():
    server = ServerConfig()
    configure(server.api_username, server.api_password)


# create_app() reconfigures from the loaded config
_default_credentials()


def verify_basic_auth(credentials: HTTPBasicCredentials = Depends(basic_security)):
    correct_username = secrets.compare_digest(credentials.username.encode(), _credentials["username"].encode())
    correct_password = secrets.compare_digest(credentials.password.encode(), _credentials["password"].encode())
    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
