"""Serializers for authentication flows and the Users collection."""

from typing import cast

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from access_control.decisions import EntityType
from access_control.roles import DEFAULT_ROLE, InvalidRole, Role, require_role
from access_control.serializers import FieldAccessMixin
from .managers import UserManager
from .services import LoginThrottle

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    """Validate and create a user with the default role.

    The bootstrap rule still applies: the very first account becomes an
    administrator.
    """

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    name = serializers.CharField(required=True, allow_blank=False, max_length=150)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def validate(self, attrs):
        """Ensure provided passwords match before creation."""
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs

    def create(self, validated_data):
        validated_data.pop("repeat_password")
        manager = cast(UserManager, User.objects)
        return manager.create_user(role=DEFAULT_ROLE, **validated_data)


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password, honouring the login lockout."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")

        if LoginThrottle.is_locked(email):
            raise AuthenticationFailed("Too many failed login attempts; try again later")

        user = User.objects.filter(email__iexact=email).first()
        if user is None or not UserManager.verify_password(user, password):
            LoginThrottle.register_failure(email)
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        LoginThrottle.reset(email)
        attrs["user"] = user
        return attrs


class RoleField(serializers.ChoiceField):
    """Role input limited to the role set active when the request is handled."""

    def __init__(self, **kwargs):
        super().__init__(choices=Role.choices, **kwargs)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        try:
            return require_role(value).value
        except InvalidRole:
            self.fail("invalid_choice", input=data)


class UserSerializer(FieldAccessMixin, serializers.ModelSerializer):
    """Users collection payload; ``role`` is visible and writable by administrators only."""

    access_entity = EntityType.USERS

    role = RoleField(required=False)
    password = serializers.CharField(write_only=True, required=False, min_length=8)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "role",
            "password",
            "is_active",
            "date_joined",
            "updated_at",
        ]
        read_only_fields = ["id", "is_active", "date_joined", "updated_at"]

    @staticmethod
    def validate_email(value):
        return value.strip()

    def create(self, validated_data):
        password = validated_data.pop("password", None)
        if not password:
            raise serializers.ValidationError({"password": ["This field is required."]})
        manager = cast(UserManager, User.objects)
        return manager.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        if password:
            instance.set_password(password)
        return super().update(instance, validated_data)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for /auth/me updates."""

    class Meta:
        """Allow partial updates of the display name."""
        model = User
        fields = ["name"]
        extra_kwargs = {"name": {"required": False, "allow_blank": False}}

    def validate(self, attrs):
        """Disallow attempts to change email or role via this endpoint.

        Any payload that includes those fields is rejected with a validation
        error rather than silently ignored, so the restriction is explicit to
        API consumers.
        """
        initial = getattr(self, "initial_data", {})
        if "email" in initial:
            raise serializers.ValidationError("Email cannot be updated via this endpoint")
        if "role" in initial:
            raise serializers.ValidationError("Role cannot be updated via this endpoint")
        return super().validate(attrs)
