from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_dotenv_if_present(env_path: Optional[str | Path] = None) -> None:
    """
    从项目根目录（或指定路径）加载 .env 文件（如果存在）。

    - 默认查找路径为 src/subs2lang/ 之上的仓库根目录下的 .env；
    - 若当前工作目录下也存在 .env，则一并加载（不会覆盖已有环境变量）。
    """
    if env_path is None:
        root = Path(__file__).resolve().parents[2]
        candidates = [root / ".env", Path.cwd() / ".env"]
    else:
        candidates = [Path(env_path)]

    for env_file in candidates:
        if env_file.is_file():
            load_dotenv(dotenv_path=env_file, override=False)
