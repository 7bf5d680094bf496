from slowapi import Limiter
from slowapi.util import get_remote_address

# Partagé entre main.py (handler d'erreur) et les routers publics (décorateurs)
limiter = Limiter(key_func=get_remote_address)
