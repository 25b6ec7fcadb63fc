"""
Barcode lookup and product analysis via Open Food Facts.
"""

import logging
from typing import Optional, List, Dict, Any

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.nutrition import BarcodeProduct, ProductAnalysis, ProductNutrition
from do_common.utils import (
    ClientException,
    HTTPStatusException,
    InvalidResponseException,
    NotFoundException,
    parse_json,
    send_request,
)

logger = logging.getLogger(__name__)


KJ_PER_KCAL = 4.184
HEALTHY_THRESHOLD = 0.6


# =============================================================================
# Parsing
# =============================================================================

def _number(data: Dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None


def _first_str(data: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str):
            return value
    return None


def _split(text: str) -> List[str]:
    return [part.strip() for part in text.split(",")]


def parse_nutrition(product: Dict[str, Any]) -> Optional[ProductNutrition]:
    """
    Per-100g nutrition from the product's nutriments.

    Energy in kJ is converted to kcal and sodium from grams to milligrams.

    Returns:
        ProductNutrition, or None unless calories are positive
    """
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        return None

    calories = _number(nutriments, "energy-kcal_100g")
    if calories is None:
        kj = _number(nutriments, "energy_100g")
        calories = kj / KJ_PER_KCAL if kj is not None else 0
    if calories <= 0:
        return None

    sodium = _number(nutriments, "sodium_100g")
    return ProductNutrition(
        calories=calories,
        protein=_number(nutriments, "proteins_100g") or 0,
        carbs=_number(nutriments, "carbohydrates_100g") or 0,
        fat=_number(nutriments, "fat_100g") or 0,
        sugars=_number(nutriments, "sugars_100g"),
        fiber=_number(nutriments, "fiber_100g"),
        sodium=sodium * 1000 if sodium is not None else None,
        saturatedFat=_number(nutriments, "saturated-fat_100g"),
    )


def parse_nutrition_per_serving(product: Dict[str, Any]) -> Optional[ProductNutrition]:
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        return None

    calories = _number(nutriments, "energy-kcal_serving")
    if calories is None:
        kj = _number(nutriments, "energy_serving")
        calories = kj / KJ_PER_KCAL if kj is not None else _number(nutriments, "energy-kcal")
    if not calories or calories <= 0:
        return None

    return ProductNutrition(
        calories=calories,
        protein=_number(nutriments, "proteins_serving", "proteins") or 0,
        carbs=_number(nutriments, "carbohydrates_serving", "carbohydrates") or 0,
        fat=_number(nutriments, "fat_serving", "fat") or 0,
    )


def parse_product(product: Dict[str, Any], barcode: str) -> BarcodeProduct:
    """
    Build a BarcodeProduct from an Open Food Facts product object.

    Each field falls back through the alternative keys the database uses
    (product_name, product_name_en, abbreviated_product_name, ...).
    """
    brand = _first_str(product, "brands")
    if brand is None and isinstance(product.get("brands_tags"), list) and product["brands_tags"]:
        brand = product["brands_tags"][0]

    categories = None
    if isinstance(product.get("categories"), str):
        categories = _split(product["categories"])
    elif isinstance(product.get("categories_tags"), list):
        categories = list(product["categories_tags"])

    ingredients = None
    if isinstance(product.get("ingredients_text"), str):
        ingredients = _split(product["ingredients_text"])
    elif isinstance(product.get("ingredients"), list):
        ingredients = [
            item["text"] for item in product["ingredients"]
            if isinstance(item, dict) and isinstance(item.get("text"), str)
        ]

    additives = None
    if isinstance(product.get("additives_tags"), list):
        additives = [tag.replace("en:", "") for tag in product["additives_tags"]]

    return BarcodeProduct(
        barcode=barcode,
        productName=_first_str(product, "product_name", "product_name_en", "abbreviated_product_name"),
        brand=brand,
        categories=categories,
        nutrition=parse_nutrition(product),
        nutritionPerServing=parse_nutrition_per_serving(product),
        servingSize=_first_str(product, "serving_size", "quantity"),
        imageUrl=_first_str(product, "image_url", "image_front_url"),
        ingredients=ingredients,
        additives=additives,
        nutriScore=_first_str(product, "nutriscore_grade"),
    )


# =============================================================================
# Analysis
# =============================================================================

def analyze_product(product: BarcodeProduct, alternatives: List[BarcodeProduct]) -> ProductAnalysis:
    """
    Score a product's healthiness and suggest improvements.

    The score starts at 0.5, moves with each nutrition finding and is
    clamped to [0, 1]; 0.6 and above counts as healthy.

    Args:
        product: Scanned product
        alternatives: Similar products, used for the lower-calorie note

    Returns:
        ProductAnalysis
    """
    insights: List[str] = []
    recommendations: List[str] = []
    score = 0.5

    nutrition = product.nutrition
    if nutrition is not None:
        if nutrition.sugars is not None and nutrition.sugars > 20:
            insights.append(f"High sugar content ({int(nutrition.sugars)}g per 100g)")
            recommendations.append("Consider products with less added sugar")
            score -= 0.1

        if nutrition.sodium is not None and nutrition.sodium > 500:
            insights.append(f"High sodium content ({int(nutrition.sodium)}mg per 100g)")
            recommendations.append("Look for low-sodium alternatives")
            score -= 0.1

        if nutrition.saturatedFat is not None and nutrition.saturatedFat > 10:
            insights.append(f"High saturated fat ({int(nutrition.saturatedFat)}g per 100g)")
            recommendations.append("Choose products with healthier fats")
            score -= 0.1

        if nutrition.fiber is not None and nutrition.fiber > 5:
            insights.append(f"Good source of fiber ({int(nutrition.fiber)}g per 100g)")
            score += 0.1

        if nutrition.protein > 10:
            insights.append(f"Good protein content ({int(nutrition.protein)}g per 100g)")
            score += 0.1

        if product.additives:
            insights.append(f"Contains {len(product.additives)} additive(s)")
            if len(product.additives) > 3:
                recommendations.append("Consider products with fewer additives")
                score -= 0.05

        grade = (product.nutriScore or "").upper()
        if grade in ("A", "B"):
            insights.append(f"Good Nutri-Score: {product.nutriScore}")
            score += 0.2
        elif grade == "C":
            insights.append(f"Moderate Nutri-Score: {product.nutriScore}")
        elif grade in ("D", "E"):
            insights.append(f"Low Nutri-Score: {product.nutriScore}")
            recommendations.append("Look for products with better Nutri-Score (A or B)")
            score -= 0.2

    current_calories = nutrition.calories if nutrition else 0
    lower = [
        alt for alt in alternatives
        if alt.nutrition is not None and alt.nutrition.calories < current_calories
    ]
    if lower:
        recommendations.append(f"Found {len(lower)} lower-calorie alternative(s) - see below")

    if not recommendations and score < HEALTHY_THRESHOLD:
        recommendations.append("Consider checking the ingredients list for whole foods")
        recommendations.append("Look for products with minimal processing")

    score = max(0.0, min(1.0, score))
    return ProductAnalysis(
        insights=insights,
        recommendations=recommendations,
        healthScore=score,
        isHealthy=score >= HEALTHY_THRESHOLD,
    )


# =============================================================================
# Service
# =============================================================================

class BarcodeService:
    """
    Open Food Facts client.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport
        self._base_url = self._settings.OPEN_FOOD_FACTS_BASE_URL.rstrip("/")

    async def lookup_barcode(self, code: str) -> BarcodeProduct:
        """
        Look up a product by barcode.

        Args:
            code: EAN/UPC barcode

        Returns:
            BarcodeProduct

        Raises:
            NotFoundException: Unknown barcode (code PRODUCT_NOT_FOUND)
            HTTPStatusException: Any other non-200 response
            InvalidResponseException: Body has no product object
        """
        response = await send_request(
            "GET",
            f"{self._base_url}/api/v2/product/{code}.json",
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
        )

        if response.status_code == 404:
            raise NotFoundException(message="Product not found in database", code="PRODUCT_NOT_FOUND")
        if response.status_code != 200:
            logger.error(f"Barcode API error: HTTP {response.status_code}")
            raise HTTPStatusException(
                status_code=response.status_code,
                message=f"Barcode API error: HTTP {response.status_code}",
            )

        body = parse_json(response)
        product = body.get("product") if isinstance(body, dict) else None
        if not isinstance(product, dict):
            raise InvalidResponseException("Invalid response from barcode API")

        result = parse_product(product, code)
        logger.info(f"Barcode {code}: {result.productName or 'Unknown'}")
        return result

    async def find_alternatives(self, product: BarcodeProduct, limit: int = 5) -> List[BarcodeProduct]:
        """
        Popular products from the same category (or brand).

        Returns an empty list when no search term is available or the
        search fails.
        """
        if product.categories:
            term = product.categories[0]
        elif product.brand:
            term = product.brand
        else:
            return []

        try:
            response = await send_request(
                "GET",
                f"{self._base_url}/cgi/search.pl",
                transport=self._transport,
                timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
                params={
                    "action": "process",
                    "tagtype_0": "categories",
                    "tag_contains_0": "contains",
                    "tag_0": term,
                    "page_size": limit + 5,
                    "json": "true",
                    "sort_by": "popularity",
                },
            )
            body = parse_json(response)
        except ClientException as e:
            logger.warning(f"Alternative search for {product.barcode} failed: {e.message}")
            return []

        products = body.get("products") if isinstance(body, dict) else None
        if not isinstance(products, list):
            return []

        candidates = [
            item for item in products
            if isinstance(item, dict) and (item.get("code") or "") != product.barcode
        ]
        return [parse_product(item, item.get("code") or "") for item in candidates[:limit]]

    def analyze_product(self, product: BarcodeProduct, alternatives: List[BarcodeProduct]) -> ProductAnalysis:
        return analyze_product(product, alternatives)
