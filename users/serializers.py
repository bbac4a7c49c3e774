from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'role',
            'display_name',
            'roll_no',
            'student_class',
            'section',
            'mobile',
            'is_verified',
            'date_joined',
        ]
        read_only_fields = ['id', 'username', 'role', 'is_verified', 'date_joined']


class UpdateProfileSerializer(serializers.ModelSerializer):
    """
    Profile fields a student edits before registering. Existing
    registrations keep the snapshot they were created with.
    """
    class Meta:
        model = User
        fields = ['display_name', 'roll_no', 'student_class', 'section', 'mobile']

    def validate_roll_no(self, value):
        return value.strip().upper()

    def validate_mobile(self, value):
        return value.strip()


class CandidateSerializer(serializers.ModelSerializer):
    """Search result shown in the invite picker."""
    name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'roll_no', 'student_class', 'section']
