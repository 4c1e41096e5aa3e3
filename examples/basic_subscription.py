"""Basic SaaS subscription: three plans with monthly and yearly prices plus promo coupons.

Run with:
    pricectl synth --app examples/basic_subscription.py
    pricectl deploy --app examples/basic_subscription.py
"""

from pricectl import Coupon, Price, Product, Stack

stack = Stack(
    None,
    'BasicSubscriptionStack',
    description='Basic SaaS subscription infrastructure',
    tags={'environment': 'production', 'team': 'billing'},
)

PLANS = [
    # (id, name, description, descriptor, monthly cents, yearly cents)
    ('Basic', 'Basic Plan', 'Perfect for individuals and small teams', 'MYAPP BASIC', 999, 9999),
    ('Pro', 'Pro Plan', 'For growing businesses with advanced needs', 'MYAPP PRO', 2999, 29999),
    ('Enterprise', 'Enterprise Plan', 'Custom solutions for large organizations', 'MYAPP ENTERPRISE', 9999, None),
]

for plan_id, name, description, descriptor, monthly, yearly in PLANS:
    product = Product(
        stack,
        f'{plan_id}Product',
        name=name,
        description=description,
        statement_descriptor=descriptor,
    )

    Price(
        stack,
        f'{plan_id}Monthly',
        product=product,
        currency='usd',
        unit_amount=monthly,
        recurring={'interval': 'month'},
        nickname=f'{plan_id} Monthly',
    )

    if yearly is not None:
        Price(
            stack,
            f'{plan_id}Yearly',
            product=product,
            currency='usd',
            unit_amount=yearly,
            recurring={'interval': 'year'},
            nickname=f'{plan_id} Yearly',
        )

# First-time customer discount
Coupon(
    stack,
    'WelcomeCoupon',
    name='Welcome Discount',
    percent_off=20,
    duration='once',
    metadata={'campaign': 'welcome-2024'},
)

# Limited-time promotion
Coupon(
    stack,
    'SummerSale',
    name='Summer Sale 2024',
    percent_off=30,
    duration='repeating',
    duration_in_months=3,
    max_redemptions=1000,
    metadata={'campaign': 'summer-2024'},
)

Coupon(
    stack,
    'AnnualUpgrade',
    name='Annual Upgrade Discount',
    percent_off=15,
    duration='forever',
    metadata={'campaign': 'annual-upgrade'},
)


if __name__ == '__main__':
    manifest = stack.synth()
    print(f"Stack {manifest.stack_id}: {len(manifest.resources)} resources")
    for entry in manifest.resources:
        print(f"  {entry.path} [{entry.kind}]")
