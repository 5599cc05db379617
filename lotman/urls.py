from django.urls import path

from lotman import views

app_name = 'lotman'

urlpatterns = [
    path("stocks/<int:stock_id>/lots/available/", views.available_lots, name="available-lots"),
    path("stocks/<int:stock_id>/lots/", views.receive_lot, name="receive-lot"),
    path("stocks/<int:stock_id>/consume/", views.consume, name="consume"),
    path("stocks/<int:stock_id>/overview/", views.stock_overview, name="stock-overview"),
    path("lots/trashed/", views.trashed_lots, name="trashed-lots"),
    path("lots/expired/", views.expired_lots, name="expired-lots"),
    path("lots/near-expiration/", views.near_expiration_lots, name="near-expiration-lots"),
    path("lots/<int:lot_id>/", views.lot_detail, name="lot-detail"),
    path("lots/<int:lot_id>/restore/", views.restore_lot, name="restore-lot"),
    path("lots/<int:lot_id>/force/", views.force_delete_lot, name="force-delete-lot"),
]
