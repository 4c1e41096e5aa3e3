"""Advanced pricing: tiered, metered, per-seat and hybrid models.

Also declares a billing meter and an entitlement feature so usage-based
prices have something to report against.

Run with:
    pricectl diff --app examples/advanced_pricing.py
"""

from pricectl import (
    Construct,
    EntitlementFeature,
    Meter,
    Price,
    PriceTier,
    Product,
    Recurring,
    Stack,
    TransformQuantity,
)

stack = Stack(
    None,
    'AdvancedPricingStack',
    description='Advanced pricing strategies for various business models',
)

METERED_MONTHLY = Recurring(interval='month', usage_type='metered')


def example_tiered_api_pricing(scope: Construct):
    """Graduated and volume tiers for API calls, both fed by one meter."""
    api = Product(scope, 'APIProduct', name='API Access',
                  description='Pay-as-you-go API access with volume discounts',
                  unit_label='API call')

    Meter(scope, 'APICallsMeter', display_name='API calls', event_name='api_call',
          default_aggregation={'formula': 'count'},
          customer_mapping={'event_payload_key': 'stripe_customer_id'})

    # Graduated: each tier prices only the units that fall inside it
    Price(scope, 'APIGraduatedPrice', product=api, currency='usd',
          recurring=METERED_MONTHLY, tiers_mode='graduated',
          tiers=[
              PriceTier(up_to=1000, unit_amount=10),
              PriceTier(up_to=10000, unit_amount=5),
              PriceTier(up_to='inf', unit_amount=2),
          ],
          nickname='API Calls - Graduated')

    # Volume: the tier reached prices every unit
    Price(scope, 'APIVolumePrice', product=api, currency='usd',
          recurring=METERED_MONTHLY, tiers_mode='volume',
          tiers=[
              {'up_to': 1000, 'unit_amount': 10},
              {'up_to': 10000, 'unit_amount': 7},
              {'up_to': 'inf', 'unit_amount': 3},
          ],
          nickname='API Calls - Volume')


def example_per_seat_pricing(scope: Construct):
    team = Product(scope, 'TeamProduct', name='Team Collaboration',
                   description='Collaborate with your team', unit_label='seat')

    Price(scope, 'PerSeatMonthly', product=team, currency='usd', unit_amount=1500,
          recurring={'interval': 'month', 'usage_type': 'licensed'},
          nickname='Per Seat - Monthly')
    Price(scope, 'PerSeatYearly', product=team, currency='usd', unit_amount=15000,
          recurring={'interval': 'year', 'usage_type': 'licensed'},
          nickname='Per Seat - Yearly')

    EntitlementFeature(scope, 'SSOFeature', name='Single sign-on', lookup_key='sso',
                       metadata={'plan': 'team'})


def example_metered_storage(scope: Construct):
    storage = Product(scope, 'StorageProduct', name='Cloud Storage',
                      description='Scalable cloud storage with usage-based billing',
                      unit_label='GB')

    Price(scope, 'StorageMetered', product=storage, currency='usd', unit_amount=20,
          recurring=METERED_MONTHLY, nickname='Storage - Metered')

    Price(scope, 'StorageGraduated', product=storage, currency='usd',
          recurring=METERED_MONTHLY, tiers_mode='graduated',
          tiers=[
              PriceTier(up_to=100, unit_amount=50),
              PriceTier(up_to=1000, unit_amount=30),
              PriceTier(up_to='inf', unit_amount=20),
          ],
          nickname='Storage - Graduated Tiers')


def example_hybrid_pricing(scope: Construct):
    """Base subscription plus a metered overage product."""
    base = Product(scope, 'HybridProduct', name='Professional Service',
                   description='Base subscription with usage-based add-ons')
    Price(scope, 'HybridBase', product=base, currency='usd', unit_amount=4999,
          recurring={'interval': 'month', 'usage_type': 'licensed'},
          nickname='Base Subscription')

    usage = Product(scope, 'UsageProduct', name='Additional Usage',
                    description='Usage beyond included quota', unit_label='unit')
    Price(scope, 'AdditionalUsage', product=usage, currency='usd', unit_amount=100,
          recurring=METERED_MONTHLY, nickname='Overage Charges')


def example_bulk_pricing(scope: Construct):
    bulk = Product(scope, 'BulkProduct', name='Bulk Processing',
                   description='Charged per 100 processed items',
                   unit_label='batch (100 items)')

    # Partial batches round up
    Price(scope, 'BulkPrice', product=bulk, currency='usd', unit_amount=500,
          recurring=METERED_MONTHLY,
          transform_quantity=TransformQuantity(divide_by=100, round='up'),
          nickname='Bulk Processing')


example_tiered_api_pricing(Construct(stack, 'Api'))
example_per_seat_pricing(Construct(stack, 'Seats'))
example_metered_storage(Construct(stack, 'Storage'))
example_hybrid_pricing(Construct(stack, 'Hybrid'))
example_bulk_pricing(Construct(stack, 'Bulk'))


if __name__ == '__main__':
    import json

    print(json.dumps(stack.synth().to_dict(), indent=2))
