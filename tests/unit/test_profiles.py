"""Unit tests for audience profile coercion."""

import pytest

from audience_guard import AudienceProfile, ConfigurationError


class TestAudienceProfileCoerce:
    """Test resolving profiles from user-supplied values."""

    def test_none_selects_strict_single(self) -> None:
        """Test an unset profile falls back to strict_single."""
        assert AudienceProfile.coerce(None) is AudienceProfile.STRICT_SINGLE

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("strict_single", AudienceProfile.STRICT_SINGLE),
            ("allow_account", AudienceProfile.ALLOW_ACCOUNT),
            ("any_match", AudienceProfile.ANY_MATCH),
            ("resource_or_aud", AudienceProfile.RESOURCE_OR_AUDIENCE),
            ("RESOURCE_OR_AUDIENCE", AudienceProfile.RESOURCE_OR_AUDIENCE),
            (" :allow_account ", AudienceProfile.ALLOW_ACCOUNT),
            (AudienceProfile.ANY_MATCH, AudienceProfile.ANY_MATCH),
        ],
    )
    def test_known_values(self, value: object, expected: AudienceProfile) -> None:
        """Test values, names and members all resolve."""
        assert AudienceProfile.coerce(value) is expected

    @pytest.mark.parametrize("value", ["strict", "", 42, ["strict_single"]])
    def test_unknown_values_raise(self, value: object) -> None:
        """Test unrecognized values are configuration errors."""
        with pytest.raises(ConfigurationError, match="unknown audience profile"):
            AudienceProfile.coerce(value)

    def test_str_is_value(self) -> None:
        """Test profiles render as their wire value."""
        assert str(AudienceProfile.RESOURCE_OR_AUDIENCE) == "resource_or_aud"
        assert f"{AudienceProfile.STRICT_SINGLE}" == "strict_single"
