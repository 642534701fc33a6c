import os
from pathlib import Path

# 项目根目录（可通过 PROJECT_ROOT 环境变量覆盖）
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT") or Path.cwd()).resolve()
