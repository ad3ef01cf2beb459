# Customer orders and delivery notes: new document types with their own counters

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('comptoir', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='billingsettings',
            name='order_number_format',
            field=models.CharField(default='CMD-{YEAR}{MONTH}-{SEQUENCE}', max_length=60),
        ),
        migrations.AddField(
            model_name='billingsettings',
            name='delivery_number_format',
            field=models.CharField(default='BL-{YEAR}{MONTH}-{SEQUENCE}', max_length=60),
        ),
        migrations.AddField(
            model_name='billingsettings',
            name='next_order_number',
            field=models.PositiveIntegerField(default=1),
        ),
        migrations.AddField(
            model_name='billingsettings',
            name='next_delivery_number',
            field=models.PositiveIntegerField(default=1),
        ),
        migrations.AlterField(
            model_name='document',
            name='type',
            field=models.CharField(
                choices=[
                    ('invoice', 'Invoice'),
                    ('quote', 'Quote'),
                    ('order', 'Customer order'),
                    ('delivery', 'Delivery note'),
                ],
                db_index=True,
                default='invoice',
                max_length=10,
            ),
        ),
    ]
