"""
Storefront forms: checkout data and coupon input.
"""
from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional, Regexp

from mascotas.services.checkout_service import PAYMENT_METHODS
from mascotas.services.whatsapp_service import CheckoutData


class CheckoutForm(FlaskForm):
    """Contact and payment data required to submit an order."""

    name = StringField(
        'Nombre completo',
        validators=[DataRequired(message='El nombre es obligatorio'), Length(max=120)],
        render_kw={'placeholder': 'Juan Pérez'}
    )

    phone = StringField(
        'WhatsApp',
        validators=[DataRequired(message='El teléfono es obligatorio'), Length(max=40)],
        render_kw={'placeholder': '11 1234-5678'}
    )

    email = StringField(
        'Email',
        validators=[
            Optional(),
            Regexp(r'^\S+@\S+\.\S+$', message='Email no válido')
        ]
    )

    city = StringField(
        'Ciudad / Zona',
        validators=[DataRequired(message='La ciudad/zona es obligatoria'), Length(max=120)]
    )

    payment_method = SelectField(
        'Método de Pago',
        choices=[(method, method) for method in PAYMENT_METHODS],
        default=PAYMENT_METHODS[0]
    )

    observations = TextAreaField(
        'Observaciones',
        validators=[Optional(), Length(max=500)],
        render_kw={'rows': 3, 'placeholder': 'Horario de entrega, referencias, etc.'}
    )

    def to_checkout_data(self) -> CheckoutData:
        return CheckoutData(
            name=self.name.data.strip(),
            phone=self.phone.data.strip(),
            city=self.city.data.strip(),
            payment_method=self.payment_method.data,
            email=(self.email.data or '').strip() or None,
            observations=(self.observations.data or '').strip(),
        )


class CouponForm(FlaskForm):
    """Coupon code typed by the customer."""

    code = StringField(
        'Código',
        validators=[DataRequired(message='Ingresá un código de cupón'), Length(max=40)]
    )
