"""FastAPI 应用入口点。"""

import logging

from fastapi import FastAPI

from authcenter_api.api.router import api_router
from authcenter_api.context import AppContext, build_context
from authcenter_api.core.config import Settings, get_settings
from authcenter_api.exceptions import register_exception_handlers
from authcenter_api.middlewares import register_middlewares


def _setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(context: AppContext | None = None) -> FastAPI:
    """创建并配置 FastAPI 应用实例。

    未传入上下文时按环境配置构造数据库与缓存连接；测试可注入自定义上下文。
    """
    if context is None:
        context = build_context(get_settings())
    settings = context.settings
    _setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.app_debug,
        description=(
            "多租户认证与授权中心。\n\n"
            "所有业务接口统一返回：`{request_id, data, meta}`。\n"
            "终端用户接口通过 `Authorization: Bearer <access_token>` 认证；"
            "租户后端调用需携带 `X-App-Id` 与 `X-App-Secret`；"
            "管理接口使用管理员访问令牌。"
        ),
        openapi_tags=[
            {"name": "health", "description": "服务存活与就绪探针。"},
            {"name": "auth", "description": "终端用户登录、注册、刷新与注销。"},
            {"name": "permissions", "description": "权限码与接口访问判定。"},
            {"name": "system", "description": "管理员登录与会话。"},
            {"name": "apps", "description": "应用（租户）生命周期与登录方式配置。"},
            {"name": "system-admins", "description": "管理员账号管理。"},
            {"name": "app", "description": "应用范围内的角色、权限与接口配置。"},
            {"name": "users", "description": "应用范围内的用户与角色分配。"},
        ],
    )
    app.state.context = context

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
