from rest_framework.response import Response

from .query import QueryTranslator


def paginated_response(request, queryset, translator: QueryTranslator, serializer_class, context=None):
    """
    Run a list endpoint through the query translator.

    Always returns: {"count", "page", "limit", "items"} where ``count`` is
    the number of matches before pagination.
    """
    descriptor = translator.translate(request.query_params)
    queryset = descriptor.apply(queryset)

    total_count = queryset.count()
    page = descriptor.paginate(queryset)

    serializer_kwargs = {"many": True, "context": context or {"request": request}}
    if descriptor.projection is not None:
        serializer_kwargs["fields"] = descriptor.projection

    serializer = serializer_class(page, **serializer_kwargs)
    return Response({
        "count": total_count,
        "page": descriptor.page,
        "limit": descriptor.limit,
        "items": serializer.data,
    })
