"""URL 校验测试"""

import pytest

from depcache.core.exceptions import ValidationError
from depcache.utils.net import join_url, validate_url_scheme


class TestValidateUrlScheme:
    def test_http_ok(self) -> None:
        validate_url_scheme("http://example.com/api")

    def test_https_ok(self) -> None:
        validate_url_scheme("https://example.com/api")

    @pytest.mark.parametrize("url", ["file:///etc/passwd", "ftp://evil.com/payload", "/local/path"])
    def test_rejected(self, url: str) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme(url)

    def test_missing_host(self) -> None:
        with pytest.raises(ValidationError, match="缺少主机名"):
            validate_url_scheme("https:///packages")

    def test_context_in_error(self) -> None:
        with pytest.raises(ValidationError, match="archive registry"):
            validate_url_scheme("file:///x", context="archive registry")


class TestJoinUrl:
    def test_join(self) -> None:
        assert join_url("https://a.com/p/", "x-1.0.tar.gz") == "https://a.com/p/x-1.0.tar.gz"
        assert join_url("https://a.com/p", "/x") == "https://a.com/p/x"
        assert join_url("https://a.com/p/") == "https://a.com/p"
