"""
Serializers for signup, login, the user directory and password change.

Serializers validate request *shape*; credential checks and token
issuance live in ``apps.accounts.authentication`` so the views stay thin.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.db import IntegrityError, transaction
from rest_framework import serializers

from apps.core.exceptions import ConflictError

User = get_user_model()

EMAIL_TAKEN = "Email already in use."


def _capitalize(value):
    value = value.strip().lower()
    return value[:1].upper() + value[1:]


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------
class SignupSerializer(serializers.ModelSerializer):
    """
    Handles new-user registration.

    Accepts email, first/last name and password (+ confirmation).  Names
    are capitalised; the email domain is lowercased.  Runs Django's
    built-in password validators.  A taken email raises ``ConflictError``.
    """

    password = serializers.CharField(
        write_only=True, min_length=8, validators=[validate_password]
    )
    password_confirm = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "password",
            "password_confirm",
        ]
        read_only_fields = ["id"]
        # A taken email is a conflict (409), not a field error.
        extra_kwargs = {"email": {"validators": []}}

    # --- field-level ---
    def validate_email(self, value):
        value = User.objects.normalize_email(value).strip()
        if User.objects.filter(email=value).exists():
            raise ConflictError(EMAIL_TAKEN)
        return value

    def validate_first_name(self, value):
        return _capitalize(value)

    def validate_last_name(self, value):
        return _capitalize(value)

    # --- object-level ---
    def validate(self, attrs):
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )
        return attrs

    def create(self, validated_data):
        validated_data.pop("password_confirm")
        try:
            with transaction.atomic():
                return User.objects.create_user(
                    email=validated_data["email"],
                    password=validated_data["password"],
                    first_name=validated_data["first_name"],
                    last_name=validated_data["last_name"],
                )
        except IntegrityError:
            raise ConflictError(EMAIL_TAKEN)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------
class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


# ---------------------------------------------------------------------------
# User directory / current user
# ---------------------------------------------------------------------------
class UserSerializer(serializers.ModelSerializer):
    """Read-only public view of a user (used for listings and assignee lookup)."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "full_name"]
        read_only_fields = fields


class UserDetailSerializer(UserSerializer):
    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["date_joined", "updated_at"]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Change Password (credential rotation)
# ---------------------------------------------------------------------------
class ChangePasswordSerializer(serializers.Serializer):
    """Requires the current password before allowing a change."""

    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(
        write_only=True, min_length=8, validators=[validate_password]
    )
    new_password_confirm = serializers.CharField(write_only=True, min_length=8)

    def validate_old_password(self, value):
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate(self, attrs):
        if attrs["new_password"] != attrs["new_password_confirm"]:
            raise serializers.ValidationError(
                {"new_password_confirm": "New passwords do not match."}
            )
        return attrs
