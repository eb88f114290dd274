"""Agency CRM backend: trial and subscription access control for insurance agents."""
