from langchain_core.prompts import PromptTemplate

# --- Définition des Prompts ---

# Prompt d'extraction envoyé avec l'image/PDF (en espagnol, langue des fiches techniques)
extraction_prompt_template = """Analiza este material de {company} (insumos eléctricos/industriales).
1. Detecta ABSOLUTAMENTE TODOS los productos o variantes técnicas.
2. Extrae: Nombre comercial (corto y preciso, modelo/código), Marca (si no aparece usa "{default_brand}") y una descripción técnica MUY concisa de máximo 15 palabras.
3. Unidad sugerida: 'u' (unidades/piezas), 'm' (metros), 'kg' (kilos), 'cm' (centímetros).
4. En "specDetails" pon el dato clave diferenciador (ej: '32 Amperes', '50 Watts', '2x1.5mm').
5. En "category" clasifica el producto.
6. "multipleModelsFound" es true si el documento presenta varios modelos o variantes.

Responde SOLAMENTE con un JSON válido con esta estructura exacta, sin markdown ni explicaciones:
{{
  "multipleModelsFound": boolean,
  "products": [
    {{
      "name": string,
      "brand": string,
      "description": string,
      "suggestedUnit": "u" | "m" | "kg" | "cm",
      "specDetails": string,
      "category": string
    }}
  ]
}}
"""
extraction_prompt = PromptTemplate(
    input_variables=["company", "default_brand"],
    template=extraction_prompt_template,
)

# Schéma de réponse imposé aux backends qui le supportent (Gemini)
EXTRACTION_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "multipleModelsFound": {"type": "BOOLEAN"},
        "products": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "brand": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "suggestedUnit": {"type": "STRING", "enum": ["u", "m", "kg", "cm"]},
                    "specDetails": {"type": "STRING"},
                    "category": {"type": "STRING"},
                },
                "required": ["name", "brand", "description", "suggestedUnit"],
            },
        },
    },
    "required": ["multipleModelsFound", "products"],
}
