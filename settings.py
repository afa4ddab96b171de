import json
import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_SETTINGS = {
    "recent_repos": [],  # 最近打开的仓库列表
    "last_repo": None,  # 上次打开的仓库
    "max_recent": 10,  # 最大记录数
    "initial_commit_count": 50,  # 首次加载的提交数量
    "load_more_count": 50,  # 每次滚动加载的提交数量
    "all_branches": True,  # 是否显示所有分支
    "row_height": 28,
    "rail_width": 16,
}


class Settings:
    def __init__(self, config_dir: Optional[str] = None):
        # 默认放在用户主目录下
        self.config_dir = config_dir or os.path.join(str(Path.home()), ".commit_graph")
        if not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir)

        # 配置文件路径
        self.config_file = os.path.join(self.config_dir, "settings.json")

        self.settings = json.loads(json.dumps(DEFAULT_SETTINGS))

        # 加载已有设置
        self.load_settings()

    def load_settings(self):
        """加载设置"""
        if not os.path.exists(self.config_file):
            return
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                saved_settings = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"加载设置失败：{e!s}")
            return
        if isinstance(saved_settings, dict):
            self.settings.update(saved_settings)

    def save_settings(self):
        """保存设置"""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.settings, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logging.error(f"保存设置失败：{e!s}")

    def add_recent_repo(self, repo_path):
        """添加最近打开的仓库"""
        self.settings["last_repo"] = repo_path

        recent = [path for path in self.settings.get("recent_repos", []) if path != repo_path]
        recent.insert(0, repo_path)
        self.settings["recent_repos"] = recent[: self.settings.get("max_recent", 10)]

        self.save_settings()

    def get_recent_repos(self):
        return self.settings.get("recent_repos", [])

    def get_last_repo(self):
        """获取上次打开的仓库"""
        return self.settings.get("last_repo")

    def get_initial_commit_count(self) -> int:
        return int(self.settings.get("initial_commit_count", DEFAULT_SETTINGS["initial_commit_count"]))

    def get_load_more_count(self) -> int:
        return int(self.settings.get("load_more_count", DEFAULT_SETTINGS["load_more_count"]))

    def get_all_branches(self) -> bool:
        return bool(self.settings.get("all_branches", True))

    def set_all_branches(self, all_branches: bool):
        self.settings["all_branches"] = all_branches
        self.save_settings()

    def get_row_height(self) -> int:
        return int(self.settings.get("row_height", DEFAULT_SETTINGS["row_height"]))

    def get_rail_width(self) -> int:
        return int(self.settings.get("rail_width", DEFAULT_SETTINGS["rail_width"]))


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """全局 settings 实例，第一次使用时才创建配置目录"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
