"""
比赛后台的业务异常（BizError 及其子类）

服务、仓储、Schema 只抛这里的异常，由全局异常处理器统一转成
{code, message, data, extra}；未被识别的异常一律按 500 返回。

错误码分段：
- 400xx  请求格式 / 参数校验
- 401xx  登录、令牌、账户状态
- 403xx  角色不满足
- 404xx  参与者、队伍、章节、故事、题目不存在
- 409xx  唯一字段冲突、重复加入同一队伍
- 429xx  频率限制
"""


class BizError(Exception):
    """
    业务异常基类：携带 code / message / http_status / extra

    子类只需覆盖类属性；extra 会原样出现在响应体中
    """

    default_code: int = 40000
    default_message: str = "操作失败"
    http_status: int = 400

    def __init__(self, message: str | None = None, code: int | None = None, *, extra: dict | None = None):
        self.code = self.default_code if code is None else code
        self.message = self.default_message if message is None else message
        self.extra = dict(extra) if extra else {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# ---------- 请求 / 参数 ----------

class BadRequestError(BizError):
    """无法解析的请求 / 请求格式错误"""
    default_code = 40001
    default_message = "请求格式错误"
    http_status = 400


class ValidationError(BizError):
    """
    参数不合法：
    - 缺少必要字段、字段格式错误
    - 取值超出约定范围（如负数分数）
    """
    default_code = 40002
    default_message = "参数校验未通过"
    http_status = 400


class NotFoundError(BizError):
    """引用的 ID 未对应到任何记录"""
    default_code = 40400
    default_message = "目标记录不存在"
    http_status = 404


class ConflictError(BizError):
    """
    资源冲突：
    - 队伍名 / 用户名 / 邮箱 / 学号 / 章节编号重复
    - 参与者已是目标队伍成员
    """
    default_code = 40900
    default_message = "与已有记录冲突"
    http_status = 409


class DuplicateFieldError(ConflictError):
    """唯一字段重复，extra.field 指出冲突字段"""
    default_code = 40901
    default_message = "字段值已存在"

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message=message, extra={"field": field})
        self.field = field


class AlreadyTeamMemberError(ConflictError):
    """参与者已在该队伍成员集合中"""
    default_code = 40902
    default_message = "参与者已在该队伍中"


class RateLimitError(BizError):
    """触发频率限制"""
    default_code = 42900
    default_message = "操作太频繁，请稍后重试"
    http_status = 429


# ---------- 登录 / 角色 ----------

class AuthError(BizError):
    """认证相关错误，统一归类为 401xx"""
    default_code = 40100
    default_message = "认证失败"
    http_status = 401


class InvalidCredentialsError(AuthError):
    """用户名或密码错误"""
    default_code = 40101
    default_message = "用户名或密码错误"


class TokenError(AuthError):
    """Token 无效 / 过期 / 已注销"""
    default_code = 40102
    default_message = "登录状态已失效，请重新登录"


class AccountInactiveError(AuthError):
    """账户被停用，禁止登录"""
    default_code = 40103
    default_message = "账户已停用，请联系管理员"


class PermissionDeniedError(BizError):
    """角色不满足接口要求"""
    default_code = 40300
    default_message = "当前角色无权访问"
    http_status = 403


def require(condition: bool, error: BizError) -> None:
    """条件不成立时抛出给定的业务异常，如 require(score is not None, ValidationError(message="分数不能为空"))"""
    if not condition:
        raise error
