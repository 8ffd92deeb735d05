import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer, ProfileUpdateSerializer,
    AdminUserCreateSerializer, AuditLogSerializer, PROFILE_UPDATE_FIELDS,
)
from .storage import UploadUrlError, generate_upload_url
from .utils import create_audit_log, pick_allowed_fields

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        # Accounts log in with their e-mail address
        attrs[self.username_field] = attrs.get(self.username_field, '').lower()
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['is_admin'] = user.is_staff
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered account {user.email}")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Get or update the caller's own profile"""
    user = request.user

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    updates = pick_allowed_fields(request.data, PROFILE_UPDATE_FIELDS)
    if not updates:
        return Response({'error': 'No fields to update'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ProfileUpdateSerializer(user, data=updates, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(UserSerializer(user).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Admin account management
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_profile_list(request):
    """List all accounts, newest first"""
    users = User.objects.all().order_by('-created_at')
    serializer = UserSerializer(users, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_user_create(request):
    """Create a pending account with no usable password"""
    serializer = AdminUserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.save()
    create_audit_log(
        request=request,
        action='create',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'is_admin': user.is_staff, 'full_name': user.full_name},
    )
    return Response({'success': True, 'user': UserSerializer(user).data}, status=status.HTTP_201_CREATED)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_profile_set_admin(request, pk):
    """Grant or revoke the admin flag"""
    user = get_object_or_404(User, pk=pk)
    is_admin = request.data.get('is_admin')
    if not isinstance(is_admin, bool):
        return Response({'error': 'is_admin must be true or false'}, status=status.HTTP_400_BAD_REQUEST)

    user.is_staff = is_admin
    user.save(update_fields=['is_staff', 'updated_at'])
    create_audit_log(
        request=request,
        action='admin_grant' if is_admin else 'admin_revoke',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'is_admin': is_admin},
    )
    return Response(UserSerializer(user).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_profile_delete(request, pk):
    """Delete an account; admins cannot delete themselves"""
    user = get_object_or_404(User, pk=pk)
    if user.pk == request.user.pk:
        return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)

    user_id, email = user.id, user.email
    user.delete()
    create_audit_log(request=request, action='delete', model_name='User', object_id=user_id, object_name=email)
    return Response({'success': True})


def upload_url_response(request, folder):
    """Validate an upload request body and answer with a pre-signed URL"""
    filename = request.data.get('filename')
    content_type = request.data.get('contentType')
    if not filename or not content_type:
        return Response({'error': 'filename and contentType are required'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        payload = generate_upload_url(filename, content_type, folder)
    except UploadUrlError:
        return Response({'error': 'Failed to generate upload URL'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(payload)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_upload_url(request):
    """Issue a pre-signed PUT URL for catalog and styling images"""
    response = upload_url_response(request, request.data.get('folder'))
    if response.status_code == status.HTTP_200_OK:
        create_audit_log(
            request=request,
            action='upload_url',
            model_name='Upload',
            object_id=response.data['key'],
        )
    return response


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)
