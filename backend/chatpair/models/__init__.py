from .user import User
from .chat_code import ChatCode
from .chat_request import ChatRequest, RequestStatus, RequestAction
