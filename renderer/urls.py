from django.urls import path
from .views import RenderView

urlpatterns = [
    path("render", RenderView.as_view(), name="render"),
]
