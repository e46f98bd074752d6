# core/pagination.py
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PortalPagination(PageNumberPagination):
    """
    ?page=1&limit=20 (limit clamped to 1..100).

    Response shape:
      {"items": [...], "pagination": {"page", "pages", "total", "limit"}}
    """
    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100

    def get_page_size(self, request):
        raw = request.query_params.get(self.page_size_query_param)
        try:
            size = int(raw)
        except (TypeError, ValueError):
            return self.page_size
        return min(max(size, 1), self.max_page_size)

    def paginate_queryset(self, queryset, request, view=None):
        # Out-of-range / garbage pages fall back to the nearest valid page
        page = request.query_params.get(self.page_query_param)
        try:
            page_number = max(int(page), 1)
        except (TypeError, ValueError):
            page_number = 1

        self.request = request
        page_size = self.get_page_size(request)
        paginator = self.django_paginator_class(queryset, page_size)
        self.page = paginator.get_page(page_number)
        return list(self.page)

    def get_paginated_response(self, data):
        paginator = self.page.paginator
        return Response({
            "items": data,
            "pagination": {
                "page": self.page.number,
                "pages": max(paginator.num_pages, 1),
                "total": paginator.count,
                "limit": paginator.per_page,
            },
        })


def paginated_response(request, queryset, serializer_class, context=None):
    """
    Small helper so APIViews paginate the same way as viewsets.
    """
    paginator = PortalPagination()
    page = paginator.paginate_queryset(queryset, request)
    serializer = serializer_class(page, many=True, context=context or {"request": request})
    return paginator.get_paginated_response(serializer.data)
