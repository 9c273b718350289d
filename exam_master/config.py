import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# 경로 설정
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.getenv("EXAM_LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
SESSION_TTL = int(os.getenv("EXAM_SESSION_TTL", "3600"))  # 1시간

# OpenAI 설정
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
MODEL_NAME = os.getenv("EXAM_MODEL_NAME", "gpt-4o-mini")
GENERATION_TIMEOUT = float(os.getenv("EXAM_GENERATION_TIMEOUT", "120"))

# PDF 설정
MAX_PDF_SIZE = 50 * 1024 * 1024  # 50 MB
MAX_PDF_PAGES = 200
MAX_SOURCE_CHARS = int(os.getenv("EXAM_MAX_SOURCE_CHARS", "30000"))  # 생성 모델로 넘기는 텍스트 상한

# 문제 생성 설정
TARGET_QUESTION_COUNT = int(os.getenv("EXAM_TARGET_QUESTIONS", "25"))

# 채점 설정
POINTS_PER_QUESTION = int(os.getenv("EXAM_POINTS_PER_QUESTION", "2"))
PASS_SCORE = int(os.getenv("EXAM_PASS_SCORE", "60"))  # 백분율 기준
