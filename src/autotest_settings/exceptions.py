"""异常定义"""


class SecretAccessError(RuntimeError):
    """敏感信息无法访问或校验失败"""


class MissingSecretError(SecretAccessError):
    """
    必需的敏感信息缺失（快速失败）

    消息中包含密钥名称和配置指引，便于在启动阶段立即定位问题
    """

    def __init__(self, message: str, key: str = ""):
        super().__init__(message)
        self.key = key

    @classmethod
    def missing_secret(cls, key: str) -> "MissingSecretError":
        """
        构造带配置指引的异常

        Args:
            key: 缺失的密钥名称

        Returns:
            MissingSecretError: 异常实例
        """
        message = (
            f"Required secret '{key}' not found!\n\n"
            "Please set up your environment:\n"
            "  1. Copy .env.template to .env\n"
            "  2. Fill in the required values\n"
            "  OR\n"
            f"  Set environment variable: {key}\n\n"
            "For CI/CD, ensure GitHub Secrets are configured.\n"
            "See docs/SECURITY.md for details."
        )
        return cls(message, key=key)
