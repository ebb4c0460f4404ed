# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：tenant.py
# @Date   ：2026/10/14 10:30
# @Author ：leemysw
#
# 2026/10/14 10:30   Create
# 2026/10/16 15:00   Share TokenCache across generations
# 2026/10/19 12:00   close()
# =====================================================
"""
[INPUT]: 依赖 httpx, token.py, core.clock
[OUTPUT]: 对外提供 AppCredentials, StaticCredentials
[POS]: 企业内部应用凭证：用 app_key / app_secret 换取 access_token
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Optional

import httpx

from dingtalk_sdk.auth.token import TokenCache, TokenInfo
from dingtalk_sdk.core.clock import Clock, SystemClock
from dingtalk_sdk.core.generation import ApiGeneration
from dingtalk_sdk.exceptions import AuthFailure
from dingtalk_sdk.utils.console import get_logger

logger = get_logger(__name__)


# ==============================================================================
# 企业内部应用凭证
# ==============================================================================
class AppCredentials:
    """
    钉钉企业内部应用凭证

    使用 app_key 和 app_secret 直接获取 access_token，无需用户授权。

    特点：
    - 旧版：GET  https://oapi.dingtalk.com/gettoken
    - 新版：POST https://api.dingtalk.com/v1.0/oauth2/accessToken
    - Token 有效期 2 小时，剩余 5 分钟内会自动刷新
    - 多个实例可共享同一个 TokenCache

    使用示例：
        creds = AppCredentials(app_key="xxx", app_secret="xxx", generation=ApiGeneration.LEGACY)
        token = creds.get_access_token()
    """

    LEGACY_TOKEN_URL = "https://oapi.dingtalk.com/gettoken"
    CURRENT_TOKEN_URL = "https://api.dingtalk.com/v1.0/oauth2/accessToken"

    def __init__(
            self,
            app_key: str,
            app_secret: str,
            generation: ApiGeneration = ApiGeneration.LEGACY,
            cache: Optional[TokenCache] = None,
            clock: Optional[Clock] = None,
            client: Optional[httpx.Client] = None,
            token_url: Optional[str] = None,
    ):
        """
        初始化凭证

        Args:
            app_key: 应用 AppKey
            app_secret: 应用 AppSecret
            generation: 获取哪一代 API 的 token
            cache: Token 缓存，不传则独享一个
            clock: 时钟
            client: HTTP 客户端
            token_url: 覆盖默认的 token 地址
        """
        self._app_key = app_key
        self._app_secret = app_secret
        self.generation = ApiGeneration.parse_concrete(generation)
        self.cache = cache if cache is not None else TokenCache()
        self.clock = clock or SystemClock()

        if token_url:
            self.token_url = token_url
        elif self.generation is ApiGeneration.LEGACY:
            self.token_url = self.LEGACY_TOKEN_URL
        else:
            self.token_url = self.CURRENT_TOKEN_URL

        # HTTP 客户端（自己创建的才负责关闭）
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=30)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def app_key(self) -> str:
        return self._app_key

    def signing_secret(self) -> str:
        return self._app_secret

    def get_access_token(self, force_refresh: bool = False) -> str:
        """
        获取 access_token

        优先从缓存加载，如果过期或即将过期（5 分钟内）则重新获取。

        Raises:
            AuthFailure: 获取失败
        """
        if not force_refresh:
            cached = self.cache.get(self.generation, self._app_key)
            if cached and not cached.is_expired(self.clock.now()):
                return cached.access_token

        token = self._fetch_token()
        self.cache.put(self.generation, self._app_key, token)
        return token.access_token

    def _fetch_token(self) -> TokenInfo:
        """从钉钉 API 获取 access_token"""
        try:
            if self.generation is ApiGeneration.LEGACY:
                response = self._client.get(
                    self.token_url,
                    params={"appkey": self._app_key, "appsecret": self._app_secret},
                )
            else:
                response = self._client.post(
                    self.token_url,
                    headers={"Content-Type": "application/json; charset=utf-8"},
                    json={"appKey": self._app_key, "appSecret": self._app_secret},
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise AuthFailure(f"获取 access_token 失败: {e}", generation=self.generation) from e

        if self.generation is ApiGeneration.LEGACY:
            if data.get("errcode", 0) != 0 or not data.get("access_token"):
                raise AuthFailure(
                    f"获取 access_token 失败: {data.get('errmsg')}",
                    vendor_code=data.get("errcode"),
                    vendor_message=data.get("errmsg", ""),
                    generation=self.generation,
                )
            access_token = data["access_token"]
            expires_in = data.get("expires_in", 7200)
        else:
            if not data.get("accessToken"):
                raise AuthFailure(
                    f"获取 accessToken 失败: {data.get('message')}",
                    vendor_code=data.get("code"),
                    vendor_message=data.get("message", ""),
                    generation=self.generation,
                )
            access_token = data["accessToken"]
            expires_in = data.get("expireIn", 7200)

        logger.debug(f"{self.generation} access_token 已刷新，有效期 {expires_in}s")
        return TokenInfo(access_token=access_token, expires_at=self.clock.now() + float(expires_in))


class StaticCredentials:
    """
    固定凭证（适合已有 token 的场景和测试）

    使用示例：
        creds = StaticCredentials(access_token="xxx", app_key="key", app_secret="secret")
    """

    def __init__(self, access_token: str = "", app_key: str = "", app_secret: str = ""):
        self._access_token = access_token
        self._app_key = app_key
        self._app_secret = app_secret

    def get_access_token(self, force_refresh: bool = False) -> str:
        return self._access_token

    def signing_secret(self) -> str:
        return self._app_secret

    def app_key(self) -> str:
        return self._app_key
