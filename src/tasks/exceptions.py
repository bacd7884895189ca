"""Task domain exceptions

タスク管理コアで使用するカスタム例外クラスを定義します。
Not-found はサービス層では None / False の戻り値で通知し、
TaskNotFoundError は CLI・HTTP 層と TaskService.require が送出します。
"""


class TaskError(Exception):
    """Task domain base exception"""

    pass


class TaskValidationError(TaskError):
    """入力値の検証エラー (タイトル・カテゴリ欠落、日付/時刻の書式不正など)"""

    pass


class InvalidTransitionError(TaskError):
    """現在のモードでは許可されていない操作"""

    pass


class TaskNotFoundError(TaskError):
    """指定IDのタスクが存在しない"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found.")
        self.task_id = task_id
