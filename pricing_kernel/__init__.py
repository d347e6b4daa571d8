"""
Pricing Kernel

Domain types, typed exceptions, clock abstraction and structured logging
shared by the pricing rule engine and the discount approval resolver:
- Declarative pricing rules with priority, validity windows and halt-on-match
- Cost components with fixed / percentage-of-base calculation
- Discount approval matrix with exclusive-lower / inclusive-upper ranges
"""

__version__ = "0.1.0"
