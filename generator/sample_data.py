"""
Sample organization - 25 people across six departments.

Used as the default dataset of the backend and as the in-memory
directory behind context lookups when no remote directory is configured.
"""

from __future__ import annotations

from typing import List

from orgchart_kernel.domain_types import Employee

# (id, name, title, department, location, manager_id)
_ROWS = (
    ("1", "Sarah Chen", "Chief Executive Officer", "Executive", "New York, NY", None),
    ("2", "Michael Rodriguez", "Chief Technology Officer", "Technology", "San Francisco, CA", "1"),
    ("3", "Lisa Thompson", "Chief Financial Officer", "Finance", "New York, NY", "1"),
    ("4", "David Kim", "VP of Engineering", "Technology", "San Francisco, CA", "2"),
    ("5", "Emily Davis", "VP of Product", "Product", "Seattle, WA", "2"),
    ("6", "Robert Wilson", "VP of Sales", "Sales", "Chicago, IL", "1"),
    ("7", "Jennifer Martinez", "VP of Marketing", "Marketing", "Los Angeles, CA", "1"),
    ("8", "Daniel Brown", "Senior Software Engineer", "Technology", "San Francisco, CA", "4"),
    ("9", "Amanda Johnson", "Senior Software Engineer", "Technology", "Austin, TX", "4"),
    ("10", "Kevin Lee", "DevOps Engineer", "Technology", "San Francisco, CA", "4"),
    ("11", "Nicole Garcia", "Product Manager", "Product", "Seattle, WA", "5"),
    ("12", "James Taylor", "UX Designer", "Product", "Seattle, WA", "5"),
    ("13", "Rachel White", "Senior Sales Representative", "Sales", "Chicago, IL", "6"),
    ("14", "Christopher Moore", "Sales Development Representative", "Sales", "Chicago, IL", "6"),
    ("15", "Stephanie Anderson", "Marketing Specialist", "Marketing", "Los Angeles, CA", "7"),
    ("16", "Thomas Jackson", "Content Marketing Manager", "Marketing", "Los Angeles, CA", "7"),
    ("17", "Maria Gonzalez", "Financial Analyst", "Finance", "New York, NY", "3"),
    ("18", "Steven Harris", "Accounting Manager", "Finance", "New York, NY", "3"),
    ("19", "Laura Clark", "HR Business Partner", "Human Resources", "New York, NY", "1"),
    ("20", "Andrew Lewis", "Junior Software Engineer", "Technology", "San Francisco, CA", "8"),
    ("21", "Melissa Young", "Quality Assurance Engineer", "Technology", "Austin, TX", "9"),
    ("22", "Brian Hall", "Customer Success Manager", "Sales", "Chicago, IL", "6"),
    ("23", "Christina Allen", "Social Media Manager", "Marketing", "Los Angeles, CA", "16"),
    ("24", "Matthew Wright", "Data Analyst", "Technology", "San Francisco, CA", "4"),
    ("25", "Ashley Turner", "Executive Assistant", "Executive", "New York, NY", "1"),
)


def sample_employees() -> List[Employee]:
    """Fresh list of the sample organization."""
    return [
        Employee(
            id=eid,
            name=name,
            title=title,
            department=department,
            email=f"{name.lower().replace(' ', '.')}@company.com",
            phone=f"+1 (555) 001-{int(eid):04d}",
            location=location,
            manager_id=manager_id,
        )
        for eid, name, title, department, location, manager_id in _ROWS
    ]
