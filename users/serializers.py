from rest_framework import serializers
from django.contrib.auth import get_user_model

User = get_user_model()

class LearnerSerializer(serializers.ModelSerializer):
    """Identity shown next to a submission on the grading workbench."""
    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name']
        read_only_fields = fields
