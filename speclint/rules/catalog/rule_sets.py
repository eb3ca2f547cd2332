from ..base import RuleSet

RESTFUL = RuleSet(
    id="restful",
    title="RESTful API Guidelines",
    url="https://opensource.zalando.com/restful-api-guidelines/",
)

SPECLINT = RuleSet(
    id="speclint",
    title="Specification hygiene",
)
