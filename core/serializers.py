from rest_framework import serializers


class DynamicFieldsModelSerializer(serializers.ModelSerializer):
    """
    ModelSerializer that takes an extra ``fields`` argument restricting
    which fields are rendered (the ``fields=`` projection of list endpoints).
    """

    def __init__(self, *args, **kwargs):
        fields = kwargs.pop("fields", None)
        super().__init__(*args, **kwargs)

        if fields is not None:
            allowed = set(fields)
            for name in set(self.fields) - allowed:
                self.fields.pop(name)
