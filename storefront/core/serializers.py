from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, AuditLog

# Fields a user may change on their own profile
PROFILE_UPDATE_FIELDS = [
    'first_name', 'last_name', 'full_name', 'phone', 'postal_code', 'address',
    'gender', 'birth_date', 'height_cm', 'weight_kg', 'age', 'body_type',
    'body_features', 'body_features_note', 'onboarding_completed',
    'display_initial', 'is_wardrobe_public', 'is_styling_public',
]


class UserSerializer(serializers.ModelSerializer):
    is_admin = serializers.BooleanField(source='is_staff', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'is_admin', 'is_active', 'created_at', 'updated_at'] + PROFILE_UPDATE_FIELDS
        read_only_fields = ['username', 'email', 'is_active', 'created_at', 'updated_at']


class ProfileUpdateSerializer(serializers.ModelSerializer):
    body_features = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    class Meta:
        model = User
        fields = PROFILE_UPDATE_FIELDS


class UserCreateSerializer(serializers.ModelSerializer):
    """Self-service registration; the e-mail address doubles as the login name"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['email', 'password', 'password_confirm', 'full_name', 'first_name', 'last_name', 'phone']

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("An account with this email already exists")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User(username=validated_data['email'], is_active=True, **validated_data)
        user.set_password(password)
        user.save()
        return user


class AdminUserCreateSerializer(serializers.Serializer):
    """Admin-created account; credentials are issued out of band"""
    email = serializers.EmailField()
    is_admin = serializers.BooleanField(default=False)
    full_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("An account with this email already exists")
        return value

    def create(self, validated_data):
        user = User(
            username=validated_data['email'],
            email=validated_data['email'],
            full_name=validated_data['full_name'],
            is_staff=validated_data['is_admin'],
        )
        user.set_unusable_password()
        user.save()
        return user


class AuditLogSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']

    def get_user(self, obj):
        if obj.user is None:
            return None
        return {'id': obj.user.id, 'email': obj.user.email}
