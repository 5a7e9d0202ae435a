"""
Admin forms for discounts, order status and store settings.
"""
from flask_wtf import FlaskForm
from wtforms import DecimalField, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, NumberRange, Length, Optional, ValidationError

from mascotas.models import DiscountKind, OrderStatus


class DiscountForm(FlaskForm):
    """Form for creating coupon codes."""

    code = StringField(
        'Código',
        validators=[DataRequired(message='El código es requerido'), Length(max=40)],
        render_kw={'placeholder': 'VERANO10'}
    )

    type = SelectField(
        'Tipo',
        choices=[
            (DiscountKind.PERCENTAGE.value, 'Porcentaje'),
            (DiscountKind.FIXED.value, 'Monto fijo'),
            (DiscountKind.FREE_SHIPPING.value, 'Envío gratis')
        ],
        default=DiscountKind.PERCENTAGE.value
    )

    value = DecimalField('Valor', places=2, default=0)

    min_purchase = DecimalField(
        'Compra mínima',
        validators=[
            Optional(),
            NumberRange(min=0, message='La compra mínima no puede ser negativa')
        ],
        places=2,
        default=0
    )

    usage_limit = IntegerField(
        'Límite de usos',
        validators=[
            Optional(),
            NumberRange(min=1, message='El límite debe ser al menos 1')
        ]
    )

    target_audience = SelectField(
        'Destinatarios',
        choices=[
            ('all', 'Todos'),
            ('mayorista', 'Mayoristas'),
            ('minorista', 'Minoristas')
        ],
        default='all'
    )

    def validate_value(self, field):
        if field.data is not None and field.data < 0:
            raise ValidationError('El valor no puede ser negativo')
        if self.type.data == DiscountKind.PERCENTAGE.value and field.data is not None and field.data > 100:
            raise ValidationError('Un porcentaje no puede superar 100')
        if self.type.data != DiscountKind.FREE_SHIPPING.value and not field.data:
            raise ValidationError('El valor es requerido')

    def to_payload(self):
        """Body for the backend's ``POST /discounts``."""
        payload = {
            'code': self.code.data.strip().upper(),
            'type': self.type.data,
            'value': float(self.value.data or 0),
            'minPurchase': float(self.min_purchase.data or 0),
            'targetAudience': self.target_audience.data,
        }
        if self.usage_limit.data:
            payload['usageLimit'] = self.usage_limit.data
        return payload


class OrderStatusForm(FlaskForm):
    """Order status change."""

    status = SelectField(
        'Estado',
        choices=[(status.value, status.label) for status in OrderStatus],
        validators=[DataRequired(message='El estado es requerido')]
    )


class SettingsForm(FlaskForm):
    """Store-wide pricing settings."""

    suggested_price_percentage = DecimalField(
        'Porcentaje de precio sugerido',
        validators=[NumberRange(min=0, message='El porcentaje debe ser un número mayor o igual a 0')],
        places=2
    )
