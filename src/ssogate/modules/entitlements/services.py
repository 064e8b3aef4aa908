"""Feature entitlement resolution.

Maps an organization's subscription to a product id and that product to
its feature flags, using the plan catalog from settings.
"""

from ssogate.config import Settings, settings


class FeatureEntitlementResolver:
    """Resolve products and features for a subscription."""

    def __init__(self, config: Settings | None = None) -> None:
        config = config or settings
        self.subscription_products = dict(config.subscription_products)
        self.product_features = {
            product: list(features) for product, features in config.product_features.items()
        }
        self.default_product_id = config.default_product_id

    async def product_id_for_subscription(self, subscription_id: str | None) -> str | None:
        """Return the product behind a subscription, or the default product."""
        if subscription_id and subscription_id in self.subscription_products:
            return self.subscription_products[subscription_id]
        return self.default_product_id

    async def features_for_subscription(self, subscription_id: str | None) -> list[str]:
        """Return the sorted feature flags granted by a subscription."""
        product_id = await self.product_id_for_subscription(subscription_id)
        if product_id is None:
            return []
        return sorted(self.product_features.get(product_id, []))
