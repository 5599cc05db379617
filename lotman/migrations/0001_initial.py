"""
Initial migration for Lotman models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Lotman models: Stock, StockLot, Movement, StockAlert."""

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Stock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Code')),
                ('object_id', models.PositiveIntegerField(verbose_name='Article ID')),
                ('critical_threshold', models.PositiveIntegerField(default=0, help_text='Low-stock alert when remaining quantity drops to this level. 0 = off.', verbose_name='Critical threshold')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('content_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to='contenttypes.contenttype', verbose_name='Article type')),
            ],
            options={
                'verbose_name': 'Stock',
                'verbose_name_plural': 'Stocks',
                'ordering': ['code'],
                'indexes': [
                    models.Index(fields=['content_type', 'object_id'], name='lotman_stock_article_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockLot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Lot code')),
                ('lot_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Supplier lot number')),
                ('quantity_initial', models.PositiveIntegerField(verbose_name='Initial quantity')),
                ('quantity_remaining', models.PositiveIntegerField(verbose_name='Remaining quantity')),
                ('date_entered', models.DateTimeField(db_index=True, verbose_name='Entry date')),
                ('date_expiration', models.DateField(blank=True, db_index=True, help_text='Last day the lot may be used. Empty = does not expire.', null=True, verbose_name='Expiration date')),
                ('unit_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Unit purchase price')),
                ('supplier', models.CharField(blank=True, default='', max_length=255, verbose_name='Supplier')),
                ('comment', models.TextField(blank=True, default='', verbose_name='Comment')),
                ('state', models.CharField(choices=[('active', 'Active'), ('deleted', 'Deleted')], db_index=True, default='active', max_length=20, verbose_name='State')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('stock', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='lotman.stock', verbose_name='Stock')),
            ],
            options={
                'verbose_name': 'Lot',
                'verbose_name_plural': 'Lots',
                'ordering': ['date_entered', 'id'],
                'indexes': [
                    models.Index(fields=['stock', 'date_entered'], name='lotman_lot_stock_entered_idx'),
                    models.Index(fields=['stock', 'date_expiration'], name='lotman_lot_stock_expiry_idx'),
                    models.Index(fields=['stock', 'state', 'quantity_remaining'], name='lotman_lot_stock_state_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_initial__gt', 0)), name='lot_quantity_initial_positive'),
                    models.CheckConstraint(condition=models.Q(('quantity_remaining__gte', 0), ('quantity_remaining__lte', models.F('quantity_initial'))), name='lot_quantity_remaining_in_range'),
                    models.CheckConstraint(condition=models.Q(('unit_price__isnull', True), ('unit_price__gte', 0), _connector='OR'), name='lot_unit_price_non_negative'),
                    models.CheckConstraint(condition=models.Q(models.Q(('deleted_at__isnull', True), ('state', 'active')), models.Q(('deleted_at__isnull', False), ('state', 'deleted')), _connector='OR'), name='lot_state_matches_tombstone'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Code')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity consumed')),
                ('method', models.CharField(choices=[('fifo', 'FIFO'), ('fefo', 'FEFO'), ('manual', 'Manual')], max_length=10, verbose_name='Withdrawal method')),
                ('lots', models.JSONField(default=list, help_text='[{"lot_id": 1, "quantity": 5}, ...]', verbose_name='Lots used')),
                ('reference_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Reference ID')),
                ('motif', models.CharField(blank=True, default='', max_length=500, verbose_name='Motif')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Date/time')),
                ('reference_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='contenttypes.contenttype', verbose_name='Reference type')),
                ('stock', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='lotman.stock', verbose_name='Stock')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Movement',
                'verbose_name_plural': 'Movements',
                'ordering': ['timestamp', 'id'],
                'indexes': [
                    models.Index(fields=['stock', 'timestamp'], name='lotman_mov_stock_ts_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Remaining quantity')),
                ('threshold', models.PositiveIntegerField(verbose_name='Critical threshold')),
                ('message', models.TextField(blank=True, default='', verbose_name='Message')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Created at')),
                ('stock', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='lotman.stock', verbose_name='Stock')),
            ],
            options={
                'verbose_name': 'Stock alert',
                'verbose_name_plural': 'Stock alerts',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['stock', 'created_at'], name='lotman_alert_stock_idx'),
                ],
            },
        ),
    ]
