import os
from dotenv import load_dotenv

load_dotenv()


def _csv(name: str, default: str):
    return [u.strip() for u in os.getenv(name, default).split(",") if u.strip()]


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
WS_PATH = os.getenv("WS_PATH", "/ws")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper().strip()

CORS_ORIGINS = _csv("CORS_ORIGINS", "*")

## Chat persistence backend:
## mysql  = aiomysql pool owned by MySQLChatStore
## memory = process-local, lost on restart
CHAT_STORE = os.getenv("CHAT_STORE", "mysql").lower().strip()

MYSQL_HOST = os.getenv("MYSQL_HOST", "127.0.0.1")
MYSQL_PORT = int(os.getenv("MYSQL_PORT", 3306))
MYSQL_DB = os.getenv("MYSQL_DB", "pinch")
MYSQL_USER = os.getenv("MYSQL_USER", "root")
MYSQL_PASSWORD = os.getenv("MYSQL_PASSWORD", "")
MYSQL_POOL_MIN = int(os.getenv("MYSQL_POOL_MIN", 1))
MYSQL_POOL_MAX = int(os.getenv("MYSQL_POOL_MAX", 5))

## Identity vocabularies, one word from each makes a display name.
## Room capacity is min(len(EMOTION_WORDS), len(ANIMAL_WORDS)).
EMOTION_WORDS = _csv("EMOTION_WORDS", "Happy,Sleepy,Grumpy,Jolly,Brave,Calm,Curious,Witty")
ANIMAL_WORDS = _csv("ANIMAL_WORDS", "Panda,Otter,Fox,Koala,Tiger,Penguin,Owl,Dolphin")

MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))
MAX_ROOM_ID_LENGTH = int(os.getenv("MAX_ROOM_ID_LENGTH", "128"))
