from pathlib import Path


# 获取项目根目录（即包含 database、api、utils 的那个目录）
BASE_DIR = Path(__file__).resolve().parents[1]

# 常用子目录路径
CONFIG_DIR = BASE_DIR / 'config'
LOG_DIR = BASE_DIR / 'log'


def resolve_project_path(path: str) -> Path:
    """相对路径按项目根目录解析，绝对路径原样返回"""
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return BASE_DIR / candidate
