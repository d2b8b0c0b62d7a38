# sessiongate Services
