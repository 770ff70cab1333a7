"""Prompt generation for virtual try-on requests."""

import logging
from typing import Optional, Sequence

from tryon.products.models import Product

logger = logging.getLogger(__name__)

KIDS_CATEGORY_MARKERS = ("kids", "child")
KIDS_DESCRIPTION_MARKERS = ("kids", "children")
FORMAL_CATEGORY_MARKERS = ("formal", "suit", "dress shirt", "blazer")
FORMAL_DESCRIPTION_MARKERS = ("formal", "business")

DEFAULT_SIZES = ("M", "L")
DEFAULT_COLORS = ("Default",)

BASE_PROMPT = """CREATE A PHOTOREALISTIC VIRTUAL TRY-ON IMAGE:

You are an expert fashion AI specializing in virtual clothing try-on technology.
You will receive two images:
1. A product image showing a clothing item
2. A customer's photo (person who wants to try on the clothing)

Your task is to create a highly realistic, natural-looking image where the customer
is wearing the clothing item from the product image. The result should look like
a real photograph, not an AI-generated or edited image."""

QUALITY_GUIDELINES = """REALISM AND QUALITY STANDARDS:

LIGHTING AND SHADOWS:
- Match the lighting conditions from the customer's original photo
- Create realistic shadows and highlights on the clothing
- Ensure consistent light direction and intensity
- Add subtle fabric texture shadows and natural creases

BODY INTEGRATION:
- Preserve the customer's natural body shape, posture, and proportions
- Maintain the customer's skin tone, facial features, and hair exactly as in the original
- Keep the customer's pose, gesture, and body position unchanged
- Ensure seamless integration between clothing and visible body parts

FABRIC REALISM:
- Show appropriate fabric texture, sheen, and material properties
- Display natural fabric behavior (how it hangs, wrinkles, stretches)
- For denim: show appropriate stiffness and texture
- For knits: show soft draping and stretch
- For silk/satin: show appropriate sheen and flow
- For cotton: show natural matte finish and moderate draping

ENVIRONMENTAL CONSISTENCY:
- Keep the background exactly as in the customer's original photo
- Maintain the same setting, environment, and context
- Preserve any objects or people in the background
- Ensure the new clothing fits naturally within the scene's context"""

TECHNICAL_REQUIREMENTS = """TECHNICAL SPECIFICATIONS:

IMAGE QUALITY:
- Output resolution should match or exceed the customer's input image
- Maintain high definition with sharp details
- Ensure no blurriness, artifacts, or unnatural transitions

COLOR ACCURACY:
- Match the exact colors from the product image
- Maintain color consistency under the customer's lighting conditions
- Ensure natural color interaction with skin tone and environment

EDGE AND BOUNDARY HANDLING:
- Create seamless edges where clothing meets skin
- Handle overlapping clothing layers realistically
- Maintain proper depth and layering of clothing items

POSE AND MOVEMENT:
- Adapt clothing to the customer's specific pose and body position
- Show how the clothing would naturally fall and move with the body
- Handle seated, standing, or dynamic poses appropriately

FINAL VERIFICATION:
- The result should look like a genuine photograph of the customer wearing the product
- No obvious signs of digital manipulation or AI generation
- Natural, believable, and commercially viable for e-commerce display"""


def _contains_any(text: str, markers: Sequence[str]) -> bool:
    return any(marker in text for marker in markers)


class PromptGeneratorService:
    """Builds generator prompts from product metadata."""

    def resolve(self, product: Product) -> str:
        """
        Pick a prompt for a catalog product.

        Kids clothing and formal wear get dedicated prompts; everything else
        gets the comprehensive try-on prompt.
        """
        category = (product.category or "").lower()
        description = (product.description or "").lower()

        if _contains_any(category, KIDS_CATEGORY_MARKERS) or _contains_any(description, KIDS_DESCRIPTION_MARKERS):
            return self.generate_kids_prompt(product.name, product.category)

        if _contains_any(category, FORMAL_CATEGORY_MARKERS) or _contains_any(description, FORMAL_DESCRIPTION_MARKERS):
            return self.generate_formal_wear_prompt(product.name, product.category)

        return self.generate_virtual_tryon_prompt(
            product.name,
            product.category,
            product.description,
            self.determine_gender(product.category, product.description),
            product.sizes or list(DEFAULT_SIZES),
            product.colors or list(DEFAULT_COLORS),
        )

    @staticmethod
    def determine_gender(category: Optional[str], description: Optional[str]) -> str:
        combined = f"{category or ''} {description or ''}".lower()
        if _contains_any(combined, ("women", "ladies", "female")):
            return "women"
        if _contains_any(combined, ("men", "male", "gentleman")):
            return "men"
        if _contains_any(combined, ("kids", "children", "child")):
            return "kids"
        return "unisex"

    def generate_virtual_tryon_prompt(
        self,
        product_name: str,
        product_category: Optional[str],
        product_description: Optional[str],
        gender: str,
        available_sizes: Optional[Sequence[str]],
        available_colors: Optional[Sequence[str]],
    ) -> str:
        """Comprehensive prompt that works for all demographics and clothing types."""
        sections = [
            BASE_PROMPT,
            self._product_section(product_name, product_category, product_description, available_colors),
            self._fitting_guidelines(gender, available_sizes),
            QUALITY_GUIDELINES,
            TECHNICAL_REQUIREMENTS,
        ]
        logger.info(f"Generated virtual try-on prompt for product: {product_name} (category: {product_category})")
        return "\n\n".join(sections)

    @staticmethod
    def _product_section(
        name: str,
        category: Optional[str],
        description: Optional[str],
        colors: Optional[Sequence[str]],
    ) -> str:
        color_info = ", ".join(colors) if colors else "As shown in the product image"
        return f"""PRODUCT INFORMATION:
- Product Name: {name}
- Category: {category or "general"}
- Description: {description or "Not provided"}
- Available colors: {color_info}

CLOTHING INTEGRATION REQUIREMENTS:
- Replace or overlay the customer's existing clothing with the product item
- Maintain the exact design, pattern, color, and style from the product image
- Ensure the clothing item appears to be the same material and texture as shown in the product image
- If the product has specific details (buttons, zippers, logos, embroidery, prints), include them accurately
- The clothing should appear to be properly fitted and naturally worn by the customer"""

    @staticmethod
    def _fitting_guidelines(gender: str, sizes: Optional[Sequence[str]]) -> str:
        size_info = ", ".join(sizes) if sizes else "Standard sizes"
        return f"""FITTING AND SIZING GUIDELINES:
- Target demographic: {gender}
- Available sizes: {size_info}
- Ensure the clothing fits naturally on the customer's body type and size
- Adjust the clothing proportions to match the customer's body dimensions
- For formal wear: ensure crisp, tailored appearance
- For casual wear: ensure relaxed, comfortable fit
- For sportswear: ensure athletic, flexible fit
- Ensure clothing drapes and folds realistically based on fabric type and body movement"""

    def generate_optimized_prompt(self, product_name: str, product_category: str) -> str:
        """Shorter prompt for uploaded product images with no catalog metadata."""
        return f"""Create a photorealistic image where the person in the uploaded photo is wearing the {product_name} ({product_category})
from the product image. Requirements:

1. REPLACE/OVERLAY: Seamlessly replace the person's current clothing with the product item
2. EXACT MATCH: Use the exact design, color, pattern, and style from the product image
3. NATURAL FIT: Ensure the clothing fits naturally on the person's body type and proportions
4. PRESERVE PERSON: Keep the person's face, body shape, pose, and background exactly the same
5. REALISTIC LIGHTING: Match lighting, shadows, and fabric texture to look like a real photograph
6. HIGH QUALITY: Output should be sharp, detailed, and commercially viable

The final image should look like a genuine photograph of the person naturally wearing the product,
with no signs of digital manipulation. Focus on realism, proper fit, and natural appearance."""

    def generate_kids_prompt(self, product_name: str, product_category: Optional[str]) -> str:
        return f"""Create a photorealistic image of the child wearing the {product_name} ({product_category}) from the product image.

SPECIAL CONSIDERATIONS FOR CHILDREN:
- Ensure age-appropriate fit and styling
- Maintain playful, comfortable appearance
- Show clothing that allows for natural child movement and play
- Ensure safety considerations (no loose strings, appropriate coverage)
- Keep the child's natural expression and pose

Standard requirements: exact product match, natural lighting, high quality,
seamless integration, preserve child's appearance and background."""

    def generate_formal_wear_prompt(self, product_name: str, product_category: Optional[str]) -> str:
        return f"""Create a photorealistic image showing the person wearing the {product_name} ({product_category}) in a formal context.

FORMAL WEAR SPECIFICS:
- Ensure crisp, tailored, professional appearance
- Show proper formal fit and draping
- Display appropriate formality for business/special occasions
- Ensure clothing appears well-pressed and properly maintained

Maintain exact product details, natural lighting, high quality, and seamless integration.
The person should look professionally dressed and confident."""
