"""
Constantes utilisées pour l'analyse et la conversion des pages HTML.
"""

# Balises de paragraphe reconnues comme texte de la page
PARAGRAPH_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6"}

# Balises enveloppes : aplaties récursivement quand elles contiennent des blocs
WRAPPER_TAGS = {"b", "i", "strong", "em", "u", "span", "div", "section", "article", "a", "font", "center"}

# Enveloppes de type bloc : seul leur contenu est conservé
CONTAINER_TAGS = {"div", "section", "article", "center"}

# Balises qui obligent à aplatir l'enveloppe qui les contient
BLOCK_TAGS = PARAGRAPH_TAGS | CONTAINER_TAGS | {"img", "video"}

# Balises ignorées sans avertissement
IGNORED_TAGS = {"script", "style", "br", "hr", "link", "meta", "audio", "source", "nav"}

# Balises d'emphase traitées par le normaliseur
EMPHASIS_TAGS = ("b", "i", "strong", "em", "u")

# Paire de commentaires délimitant un sous-arbre décoratif à ignorer
DECORATION_BEGIN = "decoration:begin"
DECORATION_END = "decoration:end"

# En-têtes de lignes d'attribution sur la couverture (anglais, français, bengali)
COVER_ATTRIBUTION_HEADERS = (
    "author",
    "authors",
    "written by",
    "illustrator",
    "illustrators",
    "illustrated by",
    "translation",
    "translated by",
    "translator",
    "published by",
    "auteur",
    "auteure",
    "auteurs",
    "illustrateur",
    "illustratrice",
    "illustrations",
    "traduction",
    "traduit par",
    "publié par",
    "লেখক",
    "লেখিকা",
    "অলংকরণ",
    "চিত্রাঙ্কন",
    "অনুবাদ",
    "প্রকাশক",
)
